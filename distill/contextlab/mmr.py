"""Maximal Marginal Relevance re-ranking for diverse chunk selection."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace

from distill.model import Chunk, cosine_distance

_MAX_DISTANCE = 2.0


@dataclass
class MMRConfig:
    """MMR parameters.

    ``lambda_`` trades relevance (1.0) against diversity (0.0); values outside
    [0, 1] are clamped. ``target_k`` is the number of chunks to select.
    """

    lambda_: float = 0.5
    target_k: int = 8


def default_mmr_config() -> MMRConfig:
    """Return the default MMR configuration."""
    return MMRConfig()


class MMR:
    """Greedily selects chunks that balance relevance and diversity.

    Each step picks the chunk maximising
    ``lambda * relevance - (1 - lambda) * max_similarity_to_selected``.
    """

    def __init__(self, config: MMRConfig | None = None) -> None:
        cfg = MMRConfig() if config is None else replace(config)
        cfg.lambda_ = min(1.0, max(0.0, cfg.lambda_))
        if cfg.target_k <= 0:
            cfg.target_k = 8
        self._cfg = cfg

    @property
    def config(self) -> MMRConfig:
        """A copy of the effective configuration."""
        return replace(self._cfg)

    def rerank(self, chunks: Sequence[Chunk]) -> list[Chunk]:
        """Return up to ``target_k`` chunks in selection order."""
        if not chunks:
            return []
        if len(chunks) <= self._cfg.target_k:
            return list(chunks)

        scores = self._normalize_scores(chunks)
        similarity = self._similarity_matrix(chunks)
        selected: list[int] = []
        remaining = list(range(len(chunks)))

        while len(selected) < self._cfg.target_k and remaining:
            best_idx = -1
            best_value = -2.0
            for idx in remaining:
                value = self._mmr_score(idx, selected, scores, similarity)
                if value > best_value:
                    best_value = value
                    best_idx = idx
            if best_idx < 0:
                break
            selected.append(best_idx)
            remaining.remove(best_idx)

        return [chunks[idx] for idx in selected]

    def rerank_with_query(
        self, chunks: Sequence[Chunk], query_embedding: Sequence[float]
    ) -> list[Chunk]:
        """Rerank using similarity to the query as relevance.

        Each chunk's ``score`` is overwritten with its query similarity.
        """
        if not chunks or not query_embedding:
            return list(chunks)
        for chunk in chunks:
            chunk.score = 1.0 - cosine_distance(chunk.embedding, query_embedding)
        return self.rerank(chunks)

    @staticmethod
    def _normalize_scores(chunks: Sequence[Chunk]) -> list[float]:
        raw = [float(chunk.score) for chunk in chunks]
        low, high = min(raw), max(raw)
        span = high - low
        if span == 0:
            return [1.0] * len(raw)
        return [(score - low) / span for score in raw]

    @staticmethod
    def _similarity_matrix(chunks: Sequence[Chunk]) -> list[list[float]]:
        n = len(chunks)
        matrix = [[0.0] * n for _ in range(n)]
        for i in range(n):
            matrix[i][i] = 1.0
            for j in range(i + 1, n):
                a, b = chunks[i].embedding, chunks[j].embedding
                sim = 1.0 - cosine_distance(a, b) if a and b else 0.0
                matrix[i][j] = matrix[j][i] = sim
        return matrix

    def _mmr_score(
        self,
        candidate: int,
        selected: list[int],
        scores: list[float],
        similarity: list[list[float]],
    ) -> float:
        relevance = scores[candidate]
        if not selected:
            return self._cfg.lambda_ * relevance
        max_sim = max(0.0, *(similarity[candidate][s] for s in selected))
        return self._cfg.lambda_ * relevance - (1 - self._cfg.lambda_) * max_sim


def mmr_rerank(chunks: Sequence[Chunk], lambda_: float, target_k: int) -> list[Chunk]:
    """Rerank chunks once with the given lambda and target size."""
    return MMR(MMRConfig(lambda_=lambda_, target_k=target_k)).rerank(chunks)


def diversity_score(chunks: Sequence[Chunk]) -> float:
    """Average pairwise cosine distance; higher means more diverse."""
    if len(chunks) < 2:
        return 0.0
    distances = [
        cosine_distance(chunks[i].embedding, chunks[j].embedding)
        for i in range(len(chunks) - 1)
        for j in range(i + 1, len(chunks))
    ]
    return sum(distances) / len(distances)


def coverage_score(selected: Sequence[Chunk], original: Sequence[Chunk]) -> float:
    """Average distance from each original chunk to its nearest selected chunk.

    Lower values mean better coverage.
    """
    if not selected or not original:
        return 0.0
    total = 0.0
    for orig in original:
        total += min(
            _MAX_DISTANCE,
            *(cosine_distance(orig.embedding, sel.embedding) for sel in selected),
        )
    return total / len(original)