"""Liveness tracking for prompt-cache prefixes with a sliding TTL window."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, replace

ANTHROPIC_CACHE_TTL = 5 * 60.0
"""Seconds a prompt-cache prefix stays warm without being referenced."""


@dataclass
class TTLEntry:
    """Last-seen time and expiry state of one cache prefix.

    Times are Unix timestamps in seconds.
    """

    prefix_hash: str = ""
    last_seen: float = 0.0
    expires_at: float = 0.0
    hit_count: int = 0
    miss_count: int = 0
    expired: bool = False

    def is_alive(self) -> bool:
        """Return True while the entry is within its TTL window."""
        return time.time() < self.expires_at


@dataclass
class TTLStats:
    """Aggregate statistics across all tracked prefixes."""

    total_prefixes: int = 0
    alive_prefixes: int = 0
    expired_prefixes: int = 0
    total_hits: int = 0
    total_misses: int = 0


class TTLTracker:
    """Track whether cache prefixes are still warm between requests.

    A prefix expires when no request references it within the TTL. Call
    :meth:`touch` after every request that carries a cache_control marker.
    """

    def __init__(self, ttl: float = 0.0) -> None:
        self._ttl = ttl if ttl > 0 else ANTHROPIC_CACHE_TTL
        self._lock = threading.Lock()
        self._entries: dict[str, TTLEntry] = {}

    @property
    def ttl(self) -> float:
        """The TTL window in seconds."""
        return self._ttl

    def touch(self, prefix_hash: str) -> bool:
        """Record a request for the prefix; return True if the cache was warm."""
        with self._lock:
            now = time.time()
            entry = self._entries.get(prefix_hash)
            if entry is None:
                self._entries[prefix_hash] = TTLEntry(
                    prefix_hash=prefix_hash,
                    last_seen=now,
                    expires_at=now + self._ttl,
                    miss_count=1,
                )
                return False

            was_alive = now < entry.expires_at
            if was_alive:
                entry.hit_count += 1
            else:
                entry.miss_count += 1
                entry.expired = True
            entry.last_seen = now
            entry.expires_at = now + self._ttl
            return was_alive

    def next_deadline(self, prefix_hash: str) -> float | None:
        """Return the time by which the next request must arrive, or None if unknown."""
        with self._lock:
            entry = self._entries.get(prefix_hash)
            return None if entry is None else entry.expires_at

    def time_until_expiry(self, prefix_hash: str) -> float:
        """Return seconds until the prefix expires; 0 if expired or unknown."""
        deadline = self.next_deadline(prefix_hash)
        if deadline is None:
            return 0.0
        return max(0.0, deadline - time.time())

    def schedule_deadline(self, prefix_hash: str, safety_margin: float) -> float | None:
        """Return the latest safe send time, the deadline minus a safety margin.

        Returns None when the prefix is unknown.
        """
        deadline = self.next_deadline(prefix_hash)
        if deadline is None:
            return None
        return deadline - safety_margin

    def entry(self, prefix_hash: str) -> TTLEntry | None:
        """Return a snapshot of the entry for a prefix, or None."""
        with self._lock:
            entry = self._entries.get(prefix_hash)
            return None if entry is None else replace(entry)

    def expired_entries(self) -> list[TTLEntry]:
        """Return snapshots of all entries past their deadline."""
        with self._lock:
            now = time.time()
            return [replace(e) for e in self._entries.values() if now > e.expires_at]

    def evict(self, prefix_hash: str) -> None:
        """Forget the entry for a prefix."""
        with self._lock:
            self._entries.pop(prefix_hash, None)

    def stats(self) -> TTLStats:
        """Return aggregate statistics over all tracked prefixes."""
        with self._lock:
            now = time.time()
            result = TTLStats(total_prefixes=len(self._entries))
            for entry in self._entries.values():
                if now < entry.expires_at:
                    result.alive_prefixes += 1
                else:
                    result.expired_prefixes += 1
                result.total_hits += entry.hit_count
                result.total_misses += entry.miss_count
            return result