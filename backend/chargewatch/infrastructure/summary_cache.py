"""Summary Cache — bounded, time-windowed cache of verification summaries.

Invariants:
    - Pure performance layer: dropping every entry never changes correctness
    - TTL never exceeds the vote recency window (clamped by Settings)
    - Every vote write for a station invalidates that station's entry
    - Size bounded: oldest entries evicted first

Design Decisions:
    - Process-local dict over Redis: single-writer deployment, no new
      infrastructure for an optional layer
"""

import time
from collections import OrderedDict
from dataclasses import dataclass
from uuid import UUID

from chargewatch.core.verification import VerificationSummary


@dataclass
class _Entry:
    summary: VerificationSummary
    stored_at: float


class SummaryCache:
    """TTL cache keyed by station id."""

    def __init__(self, ttl_seconds: float, max_entries: int = 5_000):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._entries: OrderedDict[UUID, _Entry] = OrderedDict()

    @property
    def enabled(self) -> bool:
        return self.ttl_seconds > 0

    def get(self, station_id: UUID) -> VerificationSummary | None:
        if not self.enabled:
            return None
        entry = self._entries.get(station_id)
        if entry is None:
            return None
        if time.monotonic() - entry.stored_at > self.ttl_seconds:
            self._entries.pop(station_id, None)
            return None
        return entry.summary

    def put(self, station_id: UUID, summary: VerificationSummary) -> None:
        if not self.enabled:
            return
        self._entries[station_id] = _Entry(summary, time.monotonic())
        self._entries.move_to_end(station_id)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def invalidate(self, station_id: UUID) -> None:
        self._entries.pop(station_id, None)

    def clear(self) -> None:
        self._entries.clear()


_cache: SummaryCache | None = None


def get_summary_cache(ttl_seconds: float) -> SummaryCache:
    """Process-wide cache, created on first use."""
    global _cache
    if _cache is None or _cache.ttl_seconds != ttl_seconds:
        _cache = SummaryCache(ttl_seconds)
    return _cache
