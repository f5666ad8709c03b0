"""Cache interface, statistics, configuration and errors."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass


class CacheError(Exception):
    """Base class for cache errors."""


class NotFoundError(CacheError, KeyError):
    """The requested key is not present in the cache."""

    def __init__(self, message: str = "key not found") -> None:
        super().__init__(message)

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "key not found"


class KeyTooLargeError(CacheError):
    """The key exceeds the maximum size."""

    def __init__(self, message: str = "key exceeds maximum size") -> None:
        super().__init__(message)


class ValueTooLargeError(CacheError):
    """The value exceeds the maximum size."""

    def __init__(self, message: str = "value exceeds maximum size") -> None:
        super().__init__(message)


class CacheFullError(CacheError):
    """The cache cannot accept more entries."""

    def __init__(self, message: str = "cache is full") -> None:
        super().__init__(message)


@dataclass
class Stats:
    """Cache performance counters."""

    hits: int = 0
    misses: int = 0
    sets: int = 0
    deletes: int = 0
    evictions: int = 0
    expirations: int = 0
    size: int = 0
    size_bytes: int = 0
    max_size: int = 0
    max_size_bytes: int = 0

    def hit_rate(self) -> float:
        """Return the hit rate as a percentage."""
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total * 100


@dataclass
class CacheConfig:
    """Cache configuration. Durations are in seconds; 0 means unset/unlimited."""

    max_size: int = 0
    max_size_bytes: int = 0
    default_ttl: float = 0.0
    cleanup_interval: float = 0.0


def default_config() -> CacheConfig:
    """Return the default cache configuration."""
    return CacheConfig(
        max_size=10000,
        max_size_bytes=100 * 1024 * 1024,
        default_ttl=3600.0,
        cleanup_interval=60.0,
    )


@dataclass
class Entry:
    """A cached item. ``expires_at`` is a Unix timestamp, or None for no expiry."""

    key: str = ""
    value: bytes = b""
    created_at: float = 0.0
    expires_at: float | None = None
    size: int = 0

    def is_expired(self) -> bool:
        """Return True if the entry has passed its expiry time."""
        if self.expires_at is None:
            return False
        return time.time() > self.expires_at


class Cache(ABC):
    """Interface for key/value caches."""

    @abstractmethod
    def get(self, key: str) -> bytes:
        """Return the value for key, raising NotFoundError if absent."""

    @abstractmethod
    def set(self, key: str, value: bytes, ttl: float = 0.0) -> None:
        """Store a value; a zero ttl falls back to the default."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a key, raising NotFoundError if absent."""

    @abstractmethod
    def has(self, key: str) -> bool:
        """Return whether a live entry exists for key."""

    @abstractmethod
    def clear(self) -> None:
        """Remove all entries."""

    @abstractmethod
    def stats(self) -> Stats:
        """Return a snapshot of the statistics."""

    @abstractmethod
    def close(self) -> None:
        """Release resources."""