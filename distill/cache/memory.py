"""In-memory LRU cache with TTL expiry."""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from dataclasses import replace

from distill.cache.base import (
    Cache,
    CacheConfig,
    Entry,
    NotFoundError,
    Stats,
    ValueTooLargeError,
    default_config,
)


class MemoryCache(Cache):
    """A thread-safe in-memory LRU cache with per-entry TTL.

    A background thread periodically removes expired entries until
    :meth:`close` is called.
    """

    def __init__(self, config: CacheConfig | None = None) -> None:
        cfg = replace(config) if config is not None else default_config()
        defaults = default_config()
        if cfg.max_size == 0:
            cfg.max_size = defaults.max_size
        if cfg.cleanup_interval == 0:
            cfg.cleanup_interval = defaults.cleanup_interval

        self._cfg = cfg
        self._lock = threading.RLock()
        # Ordered from least to most recently used.
        self._items: OrderedDict[str, Entry] = OrderedDict()
        self._stats = Stats(max_size=cfg.max_size, max_size_bytes=cfg.max_size_bytes)
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._cleanup_loop, daemon=True)
        self._thread.start()

    def get(self, key: str) -> bytes:
        with self._lock:
            entry = self._items.get(key)
            if entry is None:
                self._stats.misses += 1
                raise NotFoundError()
            if entry.is_expired():
                self._remove(key)
                self._stats.misses += 1
                self._stats.expirations += 1
                raise NotFoundError()
            self._items.move_to_end(key)
            self._stats.hits += 1
            return entry.value

    def set(self, key: str, value: bytes, ttl: float = 0.0) -> None:
        value = bytes(value)
        size = len(key.encode("utf-8")) + len(value)
        with self._lock:
            if self._cfg.max_size_bytes > 0 and size > self._cfg.max_size_bytes:
                raise ValueTooLargeError()

            now = time.time()
            if ttl > 0:
                expires_at: float | None = now + ttl
            elif self._cfg.default_ttl > 0:
                expires_at = now + self._cfg.default_ttl
            else:
                expires_at = None

            entry = Entry(key=key, value=value, created_at=now, expires_at=expires_at, size=size)

            old = self._items.get(key)
            if old is not None:
                self._stats.size_bytes += size - old.size
                self._items[key] = entry
                self._items.move_to_end(key)
                self._stats.sets += 1
                return

            while self._items and self._needs_eviction(size):
                self._evict_oldest()

            self._items[key] = entry
            self._stats.size += 1
            self._stats.size_bytes += size
            self._stats.sets += 1

    def delete(self, key: str) -> None:
        with self._lock:
            if key not in self._items:
                raise NotFoundError()
            self._remove(key)
            self._stats.deletes += 1

    def has(self, key: str) -> bool:
        with self._lock:
            entry = self._items.get(key)
            return entry is not None and not entry.is_expired()

    def clear(self) -> None:
        with self._lock:
            self._items.clear()
            self._stats.size = 0
            self._stats.size_bytes = 0

    def stats(self) -> Stats:
        with self._lock:
            return replace(
                self._stats,
                max_size=self._cfg.max_size,
                max_size_bytes=self._cfg.max_size_bytes,
            )

    def close(self) -> None:
        self._stop.set()

    def __enter__(self) -> MemoryCache:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _needs_eviction(self, additional_size: int) -> bool:
        if self._cfg.max_size > 0 and self._stats.size >= self._cfg.max_size:
            return True
        return (
            self._cfg.max_size_bytes > 0
            and self._stats.size_bytes + additional_size > self._cfg.max_size_bytes
        )

    def _evict_oldest(self) -> None:
        if not self._items:
            return
        oldest = next(iter(self._items))
        self._remove(oldest)
        self._stats.evictions += 1

    def _remove(self, key: str) -> None:
        entry = self._items.pop(key)
        self._stats.size -= 1
        self._stats.size_bytes -= entry.size

    def _cleanup_loop(self) -> None:
        while not self._stop.wait(self._cfg.cleanup_interval):
            self._cleanup()

    def _cleanup(self) -> None:
        with self._lock:
            now = time.time()
            expired = [
                key
                for key, entry in self._items.items()
                if entry.expires_at is not None and now > entry.expires_at
            ]
            for key in expired:
                self._remove(key)
                self._stats.expirations += 1