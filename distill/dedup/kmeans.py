"""Semantic deduplication of vectors using K-Means clustering."""

from __future__ import annotations

import math
import os
import random
import time
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from typing import Any

from distill.model import cosine_distance


@dataclass
class Vector:
    """An identified embedding vector."""

    id: str = ""
    values: list[float] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def dimension(self) -> int:
        """Return the number of components."""
        return len(self.values)


@dataclass
class DeduplicationResult:
    """Unique vectors and deduplication statistics."""

    unique_vectors: list[Vector] = field(default_factory=list)
    duplicate_count: int = 0
    total_processed: int = 0
    cluster_count: int = 0
    processing_time_ms: int = 0


@dataclass
class KMeansConfig:
    """Deduplication parameters.

    ``threshold`` is the cosine distance below which a vector duplicates its
    cluster's medoid. ``k`` of 0 means ``sqrt(n / 2)``; ``seed`` of 0 seeds
    from the clock.
    """

    threshold: float = 0.05
    k: int = 0
    max_iterations: int = 10
    workers: int = field(default_factory=lambda: os.cpu_count() or 1)
    seed: int = 0


def default_kmeans_config() -> KMeansConfig:
    """Return the default deduplication configuration."""
    return KMeansConfig()


@dataclass
class _Cluster:
    centroid: list[float]
    members: list[int] = field(default_factory=list)


class Engine:
    """Clusters vectors with K-Means and drops near-duplicates of each medoid."""

    def __init__(self, config: KMeansConfig | None = None) -> None:
        cfg = KMeansConfig() if config is None else replace(config)
        if cfg.workers <= 0:
            cfg.workers = os.cpu_count() or 1
        if cfg.max_iterations <= 0:
            cfg.max_iterations = 10
        self._cfg = cfg
        self._rng = random.Random(cfg.seed if cfg.seed != 0 else time.time_ns())

    def deduplicate(self, vectors: Sequence[Vector]) -> DeduplicationResult:
        """Return the vectors left after removing near-duplicates."""
        start = time.perf_counter()
        if not vectors:
            return DeduplicationResult()

        n = len(vectors)
        k = self._cfg.k
        if k <= 0:
            k = max(1, int(math.sqrt(n / 2)))
        k = min(k, n)

        clusters = self._k_means(vectors, k)
        with ThreadPoolExecutor(max_workers=self._cfg.workers) as pool:
            pruned = pool.map(
                lambda c: self._prune_cluster(vectors, c),
                [c for c in clusters if c.members],
            )
            unique_indices = [idx for indices in pruned for idx in indices]

        unique = [vectors[idx] for idx in unique_indices]
        return DeduplicationResult(
            unique_vectors=unique,
            duplicate_count=n - len(unique),
            total_processed=n,
            cluster_count=k,
            processing_time_ms=int((time.perf_counter() - start) * 1000),
        )

    def _k_means(self, vectors: Sequence[Vector], k: int) -> list[_Cluster]:
        dim = vectors[0].dimension()
        order = list(range(len(vectors)))
        self._rng.shuffle(order)
        centroids = [list(vectors[order[i]].values[:dim]) for i in range(k)]

        assignments = [0] * len(vectors)
        for iteration in range(self._cfg.max_iterations):
            changed = False
            for i, vector in enumerate(vectors):
                nearest = self._nearest_centroid(vector.values, centroids)
                if assignments[i] != nearest:
                    assignments[i] = nearest
                    changed = True
            if not changed and iteration > 0:
                break
            self._update_centroids(vectors, assignments, centroids, dim)

        clusters = [_Cluster(centroid=c) for c in centroids]
        for vec_idx, cluster_idx in enumerate(assignments):
            clusters[cluster_idx].members.append(vec_idx)
        return clusters

    @staticmethod
    def _nearest_centroid(values: Sequence[float], centroids: list[list[float]]) -> int:
        best_idx = 0
        best_dist = math.inf
        for i, centroid in enumerate(centroids):
            dist = cosine_distance(values, centroid)
            if dist < best_dist:
                best_dist = dist
                best_idx = i
        return best_idx

    @staticmethod
    def _update_centroids(
        vectors: Sequence[Vector],
        assignments: list[int],
        centroids: list[list[float]],
        dim: int,
    ) -> None:
        sums = [[0.0] * dim for _ in centroids]
        counts = [0] * len(centroids)
        for vec_idx, cluster_idx in enumerate(assignments):
            counts[cluster_idx] += 1
            row = sums[cluster_idx]
            for d, value in enumerate(vectors[vec_idx].values[:dim]):
                row[d] += value
        for i, count in enumerate(counts):
            if count:
                centroids[i] = [total / count for total in sums[i]]

    def _prune_cluster(self, vectors: Sequence[Vector], cluster: _Cluster) -> list[int]:
        members = cluster.members
        if len(members) <= 1:
            return list(members)

        medoid = members[0]
        best = cosine_distance(vectors[medoid].values, cluster.centroid)
        for idx in members[1:]:
            dist = cosine_distance(vectors[idx].values, cluster.centroid)
            if dist < best:
                best = dist
                medoid = idx

        medoid_values = vectors[medoid].values
        unique = [medoid]
        for idx in members:
            if idx == medoid:
                continue
            if cosine_distance(vectors[idx].values, medoid_values) >= self._cfg.threshold:
                unique.append(idx)
        return unique