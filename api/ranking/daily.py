"""
Daily baseline snapshot used for position indicators.

The baseline is computed from the live ranking on first use and kept until
midnight in the ranking time zone, advancing by whole days when
``POSITION_INDICATOR_CACHE`` spans more than 24 hours.
"""

import math
import time
from datetime import datetime, time as dt_time, timedelta
from functools import lru_cache
from typing import Callable, List, Optional

from api.config import Settings
from api.exceptions import SnapshotNotFoundError
from api.logging_config import get_logger
from api.ranking.cache import SingleFlight, TTLCache
from api.ranking.filters import filter_ranking_for_display
from api.ranking.positions import (
    add_position_indicators,
    calculate_position_changes,
    movement_statistics,
)
from api.ranking.service import RankingService, get_ranking_service
from api.ranking.snapshots import SnapshotStore
from shared.models.ranking import MovementStatistics, RankedPlayer, RankingSnapshot
from shared.models.snapshot import SnapshotInfo

logger = get_logger(__name__)

DAILY_SNAPSHOT_KEY = "dailySnapshot"


def snapshot_expiry(now_local: datetime, hours: int) -> datetime:
    """Midnight (in ``now_local``'s zone) after ``ceil(hours / 24)`` day boundaries."""
    periods = max(1, math.ceil(hours / 24))
    day = now_local.date() + timedelta(days=periods)
    return datetime.combine(day, dt_time.min, tzinfo=now_local.tzinfo)


class DailySnapshotService:
    def __init__(
        self,
        ranking_service: RankingService,
        settings: Settings,
        store: Optional[SnapshotStore] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ranking_service = ranking_service
        self.settings = settings
        self.store = store
        self.cache: TTLCache[RankingSnapshot] = TTLCache(24 * 3600, clock)
        self._gate = SingleFlight()

    @property
    def classifier(self):
        return self.ranking_service.classifier

    async def get_daily_snapshot(self) -> RankingSnapshot:
        cached = self.cache.get(DAILY_SNAPSHOT_KEY)
        if cached is not None:
            return cached
        logger.info("Daily snapshot cache miss, recomputing")
        return await self._gate.run(DAILY_SNAPSHOT_KEY, self._build_snapshot)

    async def _build_snapshot(self) -> RankingSnapshot:
        raw = await self.ranking_service.get_ranking()
        data = filter_ranking_for_display(raw, self.settings.ranking_min_games)
        now_local = self.classifier.now()
        snapshot = RankingSnapshot(
            data=data,
            created_at=now_local,
            expiry=snapshot_expiry(now_local, self.settings.position_indicator_cache),
        )
        if data:
            self._cache_until_expiry(snapshot)
        else:
            logger.warning("Live ranking is empty, daily snapshot not cached")
        return snapshot

    def _cache_until_expiry(self, snapshot: RankingSnapshot) -> None:
        now_local = self.classifier.now()
        expiry = snapshot.expiry
        if expiry is None or expiry <= now_local:
            expiry = snapshot_expiry(now_local, self.settings.position_indicator_cache)
        ttl = max(1.0, (expiry - now_local).total_seconds())
        self.cache.set(DAILY_SNAPSHOT_KEY, snapshot, ttl)
        logger.info(
            "Daily snapshot cached",
            extra={"context": {"players": len(snapshot.data), "expiry": expiry.isoformat()}},
        )

    async def get_ranking_with_positions(self) -> List[RankedPlayer]:
        current = filter_ranking_for_display(
            await self.ranking_service.get_ranking(), self.settings.ranking_min_games
        )
        baseline = await self.get_daily_snapshot()
        return add_position_indicators(current, baseline.data)

    async def movement_statistics(self) -> MovementStatistics:
        current = filter_ranking_for_display(
            await self.ranking_service.get_ranking(), self.settings.ranking_min_games
        )
        baseline = await self.get_daily_snapshot()
        return movement_statistics(calculate_position_changes(current, baseline.data))

    def _require_store(self) -> SnapshotStore:
        if self.store is None:
            raise RuntimeError("No snapshot store configured")
        return self.store

    async def save_snapshot(self) -> str:
        store = self._require_store()
        snapshot = await self.get_daily_snapshot()
        snapshot_id = await store.save_snapshot(snapshot)
        pruned = await store.prune(self.settings.snapshot_retention_days)
        logger.info(
            "Daily snapshot saved",
            extra={
                "context": {
                    "snapshot_id": snapshot_id,
                    "players": len(snapshot.data),
                    "pruned": pruned,
                }
            },
        )
        return snapshot_id

    async def list_snapshots(self, max_age_hours: int = 168) -> List[SnapshotInfo]:
        return await self._require_store().list_snapshots(max_age_hours)

    async def restore_snapshot(self, snapshot_id: str) -> RankingSnapshot:
        snapshot = await self._require_store().get_snapshot(snapshot_id)
        if snapshot is None:
            raise SnapshotNotFoundError(snapshot_id)
        self._cache_until_expiry(snapshot)
        logger.info(
            "Daily snapshot restored",
            extra={"context": {"snapshot_id": snapshot_id, "players": len(snapshot.data)}},
        )
        return snapshot

    def clear(self) -> None:
        self.cache.clear()
        self._gate.clear()


@lru_cache
def get_daily_snapshot_service() -> DailySnapshotService:
    from api.db import get_snapshot_store

    ranking_service = get_ranking_service()
    return DailySnapshotService(
        ranking_service, ranking_service.settings, store=get_snapshot_store()
    )
