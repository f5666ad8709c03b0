"""Core data types shared across the context-processing components."""

from __future__ import annotations

import copy
import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any


@dataclass
class Chunk:
    """A unit of retrieved or supplied context."""

    id: str = ""
    text: str = ""
    embedding: list[float] = field(default_factory=list)
    score: float = 0.0
    metadata: dict[str, Any] | None = field(default_factory=dict)
    cluster_id: int = 0

    def clone(self) -> Chunk:
        """Return an independent deep copy of this chunk."""
        return Chunk(
            id=self.id,
            text=self.text,
            embedding=list(self.embedding),
            score=self.score,
            metadata=copy.deepcopy(self.metadata),
            cluster_id=self.cluster_id,
        )


@dataclass
class Cluster:
    """A group of semantically similar chunks."""

    id: int = 0
    members: list[Chunk] = field(default_factory=list)
    centroid: list[float] = field(default_factory=list)
    representative: Chunk | None = None


@dataclass
class ClusterResult:
    """The outcome of clustering a set of chunks."""

    clusters: list[Cluster] = field(default_factory=list)
    representatives: list[Chunk] = field(default_factory=list)
    input_count: int = 0
    cluster_count: int = 0
    latency: float = 0.0


def cosine_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Return 1 - cosine similarity of two vectors, in the range [0, 2].

    Vectors of different length, empty vectors and zero vectors have no
    defined direction and are treated as orthogonal (distance 1).
    """
    if len(a) != len(b) or not a:
        return 1.0
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = sum(x * x for x in a)
    norm_b = sum(y * y for y in b)
    if norm_a == 0 or norm_b == 0:
        return 1.0
    similarity = dot / math.sqrt(norm_a * norm_b)
    similarity = max(-1.0, min(1.0, similarity))
    return 1.0 - similarity