"""
Persistence for daily ranking snapshots.

Snapshots are stored whole in the ``ranking_snapshots`` collection so a
baseline can be restored after a restart or inspected later.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Protocol

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase

from shared.models.ranking import RankingSnapshot
from shared.models.snapshot import SnapshotInfo

SNAPSHOT_COLLECTION = "ranking_snapshots"


class SnapshotStore(Protocol):
    async def save_snapshot(self, snapshot: RankingSnapshot) -> str: ...

    async def list_snapshots(self, max_age_hours: int = 168) -> List[SnapshotInfo]: ...

    async def get_snapshot(self, snapshot_id: str) -> Optional[RankingSnapshot]: ...

    async def prune(self, retention_days: int) -> int: ...


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MongoSnapshotStore:
    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        now: Callable[[], datetime] = _utc_now,
    ):
        self.collection = db[SNAPSHOT_COLLECTION]
        self._now = now

    async def save_snapshot(self, snapshot: RankingSnapshot) -> str:
        doc = snapshot.model_dump()
        doc["created_at"] = _as_utc(snapshot.created_at)
        if snapshot.expiry is not None:
            doc["expiry"] = _as_utc(snapshot.expiry)
        doc["player_count"] = len(snapshot.data)
        result = await self.collection.insert_one(doc)
        return str(result.inserted_id)

    async def list_snapshots(self, max_age_hours: int = 168) -> List[SnapshotInfo]:
        now = self._now()
        cutoff = now - timedelta(hours=max_age_hours)
        cursor = self.collection.find(
            {"created_at": {"$gte": cutoff}}, {"data": 0}
        ).sort("created_at", -1)
        snapshots = []
        async for doc in cursor:
            created_at = _as_utc(doc["created_at"])
            snapshots.append(
                SnapshotInfo(
                    snapshot_id=str(doc["_id"]),
                    created_at=created_at,
                    age_hours=max(0.0, (now - created_at).total_seconds() / 3600.0),
                    player_count=doc.get("player_count", 0),
                )
            )
        return snapshots

    async def get_snapshot(self, snapshot_id: str) -> Optional[RankingSnapshot]:
        try:
            oid = ObjectId(snapshot_id)
        except (InvalidId, TypeError):
            return None
        doc = await self.collection.find_one({"_id": oid})
        if not doc:
            return None
        doc.pop("_id", None)
        doc["created_at"] = _as_utc(doc["created_at"])
        if doc.get("expiry") is not None:
            doc["expiry"] = _as_utc(doc["expiry"])
        return RankingSnapshot.model_validate(doc)

    async def prune(self, retention_days: int) -> int:
        cutoff = self._now() - timedelta(days=retention_days)
        result = await self.collection.delete_many({"created_at": {"$lt": cutoff}})
        return result.deleted_count
