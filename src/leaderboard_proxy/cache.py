"""
Single-entry leaderboard cache

Holds the most recent normalized snapshot and decides whether to:
- Serve it as-is while it is fresh
- Refresh it from the upstream feed once it expires
- Fall back to the stale copy when a refresh fails

At most one upstream fetch is in flight at any time. Callers that arrive
while a refresh is running await that same refresh.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Dict, Optional

from .config import CacheConfig
from .fetcher import FetchError
from .parser import LeaderboardSnapshot, normalize

logger = logging.getLogger(__name__)


class LeaderboardCache:
    """Lazy, single-flight cache around the scoreboard fetcher"""

    def __init__(self, config: CacheConfig, fetcher: Any,
                 clock: Callable[[], float] = time.monotonic):
        self.config = config
        self.fetcher = fetcher
        self.clock = clock

        self.latest: Optional[LeaderboardSnapshot] = None
        self.fetched_at: float = 0
        self._inflight: Optional[asyncio.Task] = None

        self.stats = {
            'cache_hits': 0,
            'fetches': 0,
            'fetch_failures': 0,
            'stale_serves': 0
        }

    def _fresh_snapshot(self) -> Optional[LeaderboardSnapshot]:
        if self.latest is None:
            return None
        if self.clock() - self.fetched_at < self.config.ttl_seconds:
            return self.latest
        return None

    async def get_leaderboard(self) -> LeaderboardSnapshot:
        """Return the cached snapshot, refreshing it if it has expired"""
        snapshot = self._fresh_snapshot()
        if snapshot is not None:
            self.stats['cache_hits'] += 1
            return snapshot

        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._refresh())
            self._inflight.add_done_callback(self._clear_inflight)

        return await asyncio.shield(self._inflight)

    def _clear_inflight(self, task: asyncio.Task):
        if self._inflight is task:
            self._inflight = None
        # Mark the result retrieved even if every awaiting caller was cancelled
        if not task.cancelled():
            task.exception()

    async def _refresh(self) -> LeaderboardSnapshot:
        self.stats['fetches'] += 1
        started = self.clock()

        try:
            raw = await self.fetcher.fetch()
        except FetchError as e:
            self.stats['fetch_failures'] += 1
            logger.error(f"Fetch error: {e}")

            if self.latest is not None:
                self.stats['stale_serves'] += 1
                logger.info("Serving stale leaderboard after failed refresh")
                return self.latest

            return LeaderboardSnapshot.error(str(e))

        snapshot = normalize(raw)
        self.latest = snapshot
        self.fetched_at = started

        logger.info(f"Leaderboard refreshed - {snapshot.summary()}")
        return snapshot

    async def warm_up(self) -> LeaderboardSnapshot:
        """Populate the cache eagerly at startup"""
        return await self.get_leaderboard()

    def get_cache_stats(self) -> Dict[str, Any]:
        """Get cache statistics"""
        age = None
        if self.latest is not None:
            age = self.clock() - self.fetched_at

        return {
            'has_snapshot': self.latest is not None,
            'snapshot_status': self.latest.status if self.latest else None,
            'age_seconds': age,
            'ttl_seconds': self.config.ttl_seconds,
            'refresh_in_flight': self._inflight is not None,
            **self.stats
        }
