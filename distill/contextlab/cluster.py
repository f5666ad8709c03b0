"""Agglomerative clustering of chunks by cosine distance of their embeddings."""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass, field, replace

from distill.model import Chunk, Cluster, ClusterResult, cosine_distance

_MAX_DISTANCE = 2.0


@dataclass
class ClusterConfig:
    """Clustering parameters.

    ``threshold`` is the largest cosine distance at which two clusters are
    merged. ``min_clusters`` and ``max_clusters`` of 0 mean no limit.
    ``linkage`` is one of "single", "complete" or "average"; anything else
    is treated as "average".
    """

    threshold: float = 0.15
    min_clusters: int = 0
    max_clusters: int = 0
    linkage: str = "average"


def default_cluster_config() -> ClusterConfig:
    """Return the default clustering configuration."""
    return ClusterConfig()


@dataclass
class _Node:
    members: list[int]
    centroid: list[float]
    active: bool = True


@dataclass
class _DistanceMatrix:
    rows: list[list[float]] = field(default_factory=list)

    def __call__(self, i: int, j: int) -> float:
        return self.rows[i][j]


class Clusterer:
    """Merges the closest pair of clusters until none are within the threshold."""

    def __init__(self, config: ClusterConfig | None = None) -> None:
        cfg = ClusterConfig() if config is None else replace(config)
        if cfg.threshold <= 0:
            cfg.threshold = 0.15
        if not cfg.linkage:
            cfg.linkage = "average"
        self._cfg = cfg

    @property
    def config(self) -> ClusterConfig:
        """A copy of the effective configuration."""
        return replace(self._cfg)

    def cluster(self, chunks: Sequence[Chunk]) -> ClusterResult:
        """Cluster the chunks, setting each chunk's ``cluster_id``.

        Without any embeddings every chunk becomes its own cluster.
        """
        start = time.perf_counter()
        n = len(chunks)

        if n == 0:
            return ClusterResult(latency=time.perf_counter() - start)

        if n == 1:
            only = chunks[0]
            only.cluster_id = 0
            return ClusterResult(
                clusters=[Cluster(id=0, members=[only], centroid=only.embedding)],
                representatives=[only],
                input_count=1,
                cluster_count=1,
                latency=time.perf_counter() - start,
            )

        if not any(chunk.embedding for chunk in chunks):
            clusters = []
            for index, chunk in enumerate(chunks):
                chunk.cluster_id = index
                clusters.append(Cluster(id=index, members=[chunk]))
            return ClusterResult(
                clusters=clusters,
                representatives=list(chunks),
                input_count=n,
                cluster_count=n,
                latency=time.perf_counter() - start,
            )

        nodes = [_Node(members=[i], centroid=list(chunk.embedding)) for i, chunk in enumerate(chunks)]
        distance = self._distance_matrix(chunks)

        active = n
        while active > 1:
            if self._cfg.min_clusters > 0 and active <= self._cfg.min_clusters:
                break

            best = self._closest_pair(nodes, distance)
            if best is None:
                break
            min_dist, i, j = best
            if min_dist > self._cfg.threshold:
                break

            self._merge(nodes[i], nodes[j], chunks)
            nodes[j].active = False
            active -= 1

            if self._cfg.max_clusters > 0 and active <= self._cfg.max_clusters:
                break

        clusters = []
        for node in (node for node in nodes if node.active):
            cluster_id = len(clusters)
            members = []
            for index in node.members:
                chunks[index].cluster_id = cluster_id
                members.append(chunks[index])
            clusters.append(Cluster(id=cluster_id, members=members, centroid=node.centroid))

        return ClusterResult(
            clusters=clusters,
            input_count=n,
            cluster_count=len(clusters),
            latency=time.perf_counter() - start,
        )

    @staticmethod
    def _distance_matrix(chunks: Sequence[Chunk]) -> _DistanceMatrix:
        n = len(chunks)
        rows = [[0.0] * n for _ in range(n)]
        for i in range(n):
            for j in range(i + 1, n):
                a, b = chunks[i].embedding, chunks[j].embedding
                dist = cosine_distance(a, b) if a and b else _MAX_DISTANCE
                rows[i][j] = rows[j][i] = dist
        return _DistanceMatrix(rows)

    def _closest_pair(
        self, nodes: list[_Node], distance: _DistanceMatrix
    ) -> tuple[float, int, int] | None:
        best: tuple[float, int, int] | None = None
        min_dist = _MAX_DISTANCE
        live = [i for i, node in enumerate(nodes) if node.active]
        for pos, i in enumerate(live):
            for j in live[pos + 1:]:
                dist = self._linkage_distance(nodes[i], nodes[j], distance)
                if dist < min_dist:
                    min_dist = dist
                    best = (dist, i, j)
        return best

    def _linkage_distance(self, a: _Node, b: _Node, distance: _DistanceMatrix) -> float:
        pairs = [distance(i, j) for i in a.members for j in b.members]
        if self._cfg.linkage == "single":
            return min(pairs, default=_MAX_DISTANCE)
        if self._cfg.linkage == "complete":
            return max(pairs, default=0.0)
        if not pairs:
            return _MAX_DISTANCE
        return sum(pairs) / len(pairs)

    @staticmethod
    def _merge(a: _Node, b: _Node, chunks: Sequence[Chunk]) -> None:
        a.members.extend(b.members)
        dim = len(chunks[0].embedding)
        if dim == 0:
            return
        centroid = [0.0] * dim
        for index in a.members:
            for d, value in enumerate(chunks[index].embedding[:dim]):
                centroid[d] += value
        count = len(a.members)
        a.centroid = [value / count for value in centroid]


def cluster_by_threshold(chunks: Sequence[Chunk], threshold: float) -> ClusterResult:
    """Cluster chunks once with the default settings and the given threshold."""
    return Clusterer(replace(default_cluster_config(), threshold=threshold)).cluster(chunks)


def _max_score(chunks: Sequence[Chunk]) -> float:
    return max((chunk.score for chunk in chunks), default=0.0)


def sort_clusters_by_size(clusters: list[Cluster]) -> None:
    """Sort clusters in place by member count, largest first."""
    clusters.sort(key=lambda cluster: len(cluster.members), reverse=True)


def sort_clusters_by_max_score(clusters: list[Cluster]) -> None:
    """Sort clusters in place by their highest member score, highest first."""
    clusters.sort(key=lambda cluster: _max_score(cluster.members), reverse=True)