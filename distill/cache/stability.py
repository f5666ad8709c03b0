"""Detection of dynamic content leaking into cached prompt prefixes."""

from __future__ import annotations

import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass, field, replace

from distill.cache.prefix import partition_for_cache_aware_dedup
from distill.model import Chunk

_DEFAULT_DYNAMIC_PATTERNS = (
    "request_id", "requestid", "request-id", "request id",
    "timestamp", "datetime", "time.now", "date.now",
    "uuid", "random", "rand.",
    "user_id", "userid", "user-id",
    "session_id", "sessionid",
    "nonce", "token:",
)


@dataclass
class StabilityRecord:
    """Prefix hash observations for one call site."""

    call_site: str = ""
    hashes: list[str] = field(default_factory=list)
    first_seen: float = 0.0
    last_seen: float = 0.0
    total_checks: int = 0
    changes: int = 0

    def stability_rate(self) -> float:
        """Fraction of checks where the prefix was unchanged (1.0 = stable)."""
        if self.total_checks <= 1:
            return 1.0
        return 1.0 - self.changes / (self.total_checks - 1)


@dataclass
class StabilityIssue:
    """A detected prefix instability."""

    call_site: str = ""
    stability_rate: float = 0.0
    total_checks: int = 0
    changes: int = 0
    previous_hash: str = ""
    current_hash: str = ""
    diff: str = ""
    likely_cause: str = ""

    def __str__(self) -> str:
        return (
            f"cache-prefix-unstable {self.call_site}: "
            f"stability={self.stability_rate * 100:.0f}% "
            f"({self.changes}/{self.total_checks} changes) — {self.likely_cause}"
        )


@dataclass
class StabilityConfig:
    """Sensitivity settings for the validator; non-positive values use defaults."""

    warmup_checks: int = 3
    unstable_threshold: float = 0.8
    max_hash_history: int = 100
    dynamic_patterns: list[str] = field(
        default_factory=lambda: list(_DEFAULT_DYNAMIC_PATTERNS)
    )


def default_stability_config() -> StabilityConfig:
    """Return the default validator configuration."""
    return StabilityConfig()


class StabilityValidator:
    """Track prefix hashes per call site and report unstable prefixes."""

    def __init__(self, config: StabilityConfig | None = None) -> None:
        cfg = StabilityConfig() if config is None else replace(config)
        if cfg.warmup_checks <= 0:
            cfg.warmup_checks = 3
        if cfg.unstable_threshold <= 0:
            cfg.unstable_threshold = 0.8
        if cfg.max_hash_history <= 0:
            cfg.max_hash_history = 100
        cfg.dynamic_patterns = list(cfg.dynamic_patterns or _DEFAULT_DYNAMIC_PATTERNS)
        self._cfg = cfg
        self._lock = threading.Lock()
        self._records: dict[str, StabilityRecord] = {}

    def check(self, call_site: str, chunks: Sequence[Chunk]) -> list[StabilityIssue]:
        """Record the current prefix hash for a call site and report issues.

        Returns an empty list when there are no cache_control markers, while
        warming up, or when the prefix is stable enough.
        """
        partition = partition_for_cache_aware_dedup(chunks)
        if partition.marker_count == 0:
            return []

        current_hash = partition.prefix_hash
        prefix_text = "".join(chunk.text + "\n" for chunk in partition.prefix)

        with self._lock:
            now = time.time()
            record = self._records.get(call_site)
            if record is None:
                record = StabilityRecord(call_site=call_site, first_seen=now)
                self._records[call_site] = record

            record.last_seen = now
            record.total_checks += 1

            prev_hash = record.hashes[-1] if record.hashes else ""
            changed = bool(prev_hash) and prev_hash != current_hash
            if changed:
                record.changes += 1

            record.hashes.append(current_hash)
            if len(record.hashes) > self._cfg.max_hash_history:
                record.hashes = record.hashes[-self._cfg.max_hash_history:]

            if record.total_checks < self._cfg.warmup_checks:
                return []

            rate = record.stability_rate()
            if rate >= self._cfg.unstable_threshold:
                return []

            issue = StabilityIssue(
                call_site=call_site,
                stability_rate=rate,
                total_checks=record.total_checks,
                changes=record.changes,
                previous_hash=prev_hash,
                current_hash=current_hash,
                likely_cause=self._diagnose_cause(prefix_text),
            )
            if changed:
                issue.diff = (
                    f"prefix hash changed: {prev_hash[:8]} → {current_hash[:8]}"
                )
            return [issue]

    def validate_text(self, prefix_text: str) -> list[str]:
        """Return the dynamic patterns found in the text, in configured order."""
        lower = prefix_text.lower()
        found: list[str] = []
        for pattern in self._cfg.dynamic_patterns:
            if pattern not in found and pattern in lower:
                found.append(pattern)
        return found

    def stats(self, call_site: str) -> StabilityRecord | None:
        """Return a copy of the record for a call site, or None."""
        with self._lock:
            record = self._records.get(call_site)
            return None if record is None else _copy_record(record)

    def all_stats(self) -> list[StabilityRecord]:
        """Return copies of the records for all observed call sites."""
        with self._lock:
            return [_copy_record(r) for r in self._records.values()]

    def reset(self, call_site: str) -> None:
        """Forget all observations for a call site."""
        with self._lock:
            self._records.pop(call_site, None)

    def _diagnose_cause(self, text: str) -> str:
        found = self.validate_text(text)
        if not found:
            return "unknown — prefix content changes between requests"
        return "likely dynamic interpolation: " + ", ".join(found)


def _copy_record(record: StabilityRecord) -> StabilityRecord:
    return replace(record, hashes=list(record.hashes))