from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

import structlog

from .models import CacheStats, EvaluationResult

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CacheEntry:
    result: EvaluationResult
    inserted_at: datetime


class ResultCache:
    """In-memory map of normalized URL -> latest EvaluationResult.

    Entries are only reused while younger than `ttl`; `get` enforces this on
    its own, and `sweep_expired` drops stale entries so memory stays bounded.
    A single lock guards the map, so the cache is safe to share between the
    event loop, worker threads and the background sweep.
    """

    def __init__(self, ttl: timedelta = timedelta(hours=24), clock: Clock = _utcnow):
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def _is_fresh(self, entry: CacheEntry, now: datetime) -> bool:
        return now - entry.inserted_at < self.ttl

    def get(self, key: str, now: datetime | None = None) -> EvaluationResult | None:
        now = now or self._clock()
        with self._lock:
            entry = self._entries.get(key)
        if entry is None or not self._is_fresh(entry, now):
            return None
        return entry.result

    def put(self, key: str, result: EvaluationResult) -> None:
        entry = CacheEntry(result=result, inserted_at=self._clock())
        with self._lock:
            self._entries[key] = entry

    def sweep_expired(self, now: datetime | None = None) -> int:
        now = now or self._clock()
        with self._lock:
            stale = [k for k, e in self._entries.items() if not self._is_fresh(e, now)]
            for key in stale:
                del self._entries[key]
        return len(stale)

    def stats(self) -> CacheStats:
        with self._lock:
            scores = [e.result.score for e in self._entries.values()]
        average = sum(scores) / len(scores) if scores else 0.0
        return CacheStats(total_cached=len(scores), average_score=average)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


async def sweep_periodically(cache: ResultCache, interval_s: float) -> None:
    """Sweep `cache` every `interval_s` seconds until cancelled."""
    logger.info("Cache sweeper started", interval_s=interval_s)
    try:
        while True:
            await asyncio.sleep(interval_s)
            try:
                removed = cache.sweep_expired()
            except Exception:
                logger.exception("Cache sweep failed")
                continue
            if removed:
                logger.info("Expired cache entries removed", removed=removed, remaining=len(cache))
    finally:
        logger.info("Cache sweeper stopped")
