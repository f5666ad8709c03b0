"""Selection of one representative chunk per cluster."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from distill.model import Chunk, Cluster, ClusterResult, cosine_distance


class SelectionStrategy(str, Enum):
    """How a representative is picked from a cluster."""

    SCORE = "score"
    CENTROID = "centroid"
    LENGTH = "length"
    HYBRID = "hybrid"


@dataclass
class SelectorConfig:
    """Selection parameters; the weights apply to the hybrid strategy only."""

    strategy: SelectionStrategy | str = SelectionStrategy.SCORE
    score_weight: float = 0.7
    centroid_weight: float = 0.3
    length_weight: float = 0.0


def default_selector_config() -> SelectorConfig:
    """Return the default selector configuration."""
    return SelectorConfig()


def _text_length(chunk: Chunk) -> int:
    return len(chunk.text.encode("utf-8"))


class Selector:
    """Picks representatives from clusters using the configured strategy."""

    def __init__(self, config: SelectorConfig | None = None) -> None:
        cfg = SelectorConfig() if config is None else replace(config)
        if not cfg.strategy:
            cfg.strategy = SelectionStrategy.SCORE
        self._cfg = cfg

    def select(self, result: ClusterResult | None) -> list[Chunk]:
        """Pick a representative for every cluster.

        Each cluster's ``representative`` and the result's ``representatives``
        are updated as well.
        """
        if result is None or not result.clusters:
            return []
        representatives = []
        for cluster in result.clusters:
            rep = self.select_from_cluster(cluster)
            if rep is not None:
                representatives.append(rep)
                cluster.representative = rep
        result.representatives = representatives
        return representatives

    def select_from_cluster(self, cluster: Cluster | None) -> Chunk | None:
        """Return the representative of one cluster, or None if it is empty."""
        if cluster is None or not cluster.members:
            return None
        if len(cluster.members) == 1:
            return cluster.members[0]

        strategy = self._cfg.strategy
        if strategy == SelectionStrategy.CENTROID:
            return self._by_centroid(cluster)
        if strategy == SelectionStrategy.LENGTH:
            return self._by_length(cluster)
        if strategy == SelectionStrategy.HYBRID:
            return self._by_hybrid(cluster)
        return self._by_score(cluster)

    @staticmethod
    def _by_score(cluster: Cluster) -> Chunk:
        best = cluster.members[0]
        for member in cluster.members[1:]:
            if member.score > best.score:
                best = member
        return best

    def _by_centroid(self, cluster: Cluster) -> Chunk:
        if not cluster.centroid:
            return self._by_score(cluster)
        best = cluster.members[0]
        best_dist = cosine_distance(best.embedding, cluster.centroid)
        for member in cluster.members[1:]:
            dist = cosine_distance(member.embedding, cluster.centroid)
            if dist < best_dist:
                best, best_dist = member, dist
        return best

    @staticmethod
    def _by_length(cluster: Cluster) -> Chunk:
        best = cluster.members[0]
        for member in cluster.members[1:]:
            if _text_length(member) > _text_length(best):
                best = member
        return best

    def _by_hybrid(self, cluster: Cluster) -> Chunk:
        if not cluster.centroid:
            return self._by_score(cluster)

        total = self._cfg.score_weight + self._cfg.centroid_weight + self._cfg.length_weight
        if total == 0:
            return self._by_score(cluster)
        score_w = self._cfg.score_weight / total
        centroid_w = self._cfg.centroid_weight / total
        length_w = self._cfg.length_weight / total

        members = cluster.members
        scores = [m.score for m in members]
        distances = [cosine_distance(m.embedding, cluster.centroid) for m in members]
        lengths = [_text_length(m) for m in members]

        min_score, score_range = min(scores), max(scores) - min(scores)
        min_dist = min(2.0, *distances)
        dist_range = max(0.0, *distances) - min_dist
        min_len, len_range = min(lengths), max(lengths) - min(lengths)

        best = members[0]
        best_value = -1.0
        for member, score, dist, length in zip(members, scores, distances, lengths):
            value = score_w * ((score - min_score) / score_range if score_range > 0 else 1.0)
            value += centroid_w * (1.0 - (dist - min_dist) / dist_range if dist_range > 0 else 1.0)
            value += length_w * ((length - min_len) / len_range if len_range > 0 else 1.0)
            if value > best_value:
                best, best_value = member, value
        return best


def select_top_k(
    result: ClusterResult | None, k: int, strategy: SelectionStrategy | str
) -> list[Chunk]:
    """Select representatives and return the ``k`` with the highest scores."""
    selector = Selector(replace(default_selector_config(), strategy=strategy))
    reps = selector.select(result)
    if len(reps) <= k:
        return reps

    # Pairwise exchange sort, descending by score.
    for i in range(len(reps) - 1):
        for j in range(i + 1, len(reps)):
            if reps[j].score > reps[i].score:
                reps[i], reps[j] = reps[j], reps[i]
    return reps[:k]