"""Partitioning of chunks into a frozen cache prefix and a dedup-eligible suffix."""

from __future__ import annotations

import hashlib
from collections.abc import Sequence
from dataclasses import dataclass, field

from distill.model import Chunk


@dataclass
class PrefixPartition:
    """Chunks split at the position after the last cache_control marker."""

    prefix: list[Chunk] = field(default_factory=list)
    suffix: list[Chunk] = field(default_factory=list)
    prefix_hash: str = ""
    frozen_prefix_tokens: int = 0
    marker_count: int = 0


@dataclass
class PrefixAwareStats:
    """Deduplication statistics extended with cache prefix information."""

    cache_prefix_frozen: bool = False
    cache_prefix_tokens: int = 0
    cache_prefix_hash: str = ""
    suffix_input_count: int = 0
    suffix_output_count: int = 0


def has_cache_control(chunk: Chunk) -> bool:
    """Return True when the chunk carries a non-empty cache_control marker."""
    if not chunk.metadata or "cache_control" not in chunk.metadata:
        return False
    value = chunk.metadata["cache_control"]
    if isinstance(value, bool):
        return value
    if isinstance(value, (str, dict)):
        return len(value) > 0
    return value is not None


def partition_for_cache_aware_dedup(chunks: Sequence[Chunk]) -> PrefixPartition:
    """Freeze every chunk up to and including the last marked one.

    Only the suffix should go through deduplication; the prefix is prepended
    unchanged afterwards.
    """
    marked = [i for i, chunk in enumerate(chunks) if has_cache_control(chunk)]
    if not marked:
        return PrefixPartition(prefix=[], suffix=list(chunks))

    split = marked[-1] + 1
    prefix = list(chunks[:split])
    return PrefixPartition(
        prefix=prefix,
        suffix=list(chunks[split:]),
        prefix_hash=_hash_prefix(prefix),
        frozen_prefix_tokens=_estimate_prefix_tokens(prefix),
        marker_count=len(marked),
    )


def _hash_prefix(chunks: Sequence[Chunk]) -> str:
    digest = hashlib.sha256()
    for chunk in chunks:
        digest.update(chunk.text.encode("utf-8"))
        digest.update(b"\x00")
    return digest.hexdigest()[:16]


def _estimate_prefix_tokens(chunks: Sequence[Chunk]) -> int:
    return sum((len(chunk.text.encode("utf-8")) + 3) // 4 for chunk in chunks)