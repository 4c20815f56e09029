from functools import lru_cache

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from api.config import settings
from api.ranking.snapshots import MongoSnapshotStore


@lru_cache
def get_client() -> AsyncIOMotorClient:
    return AsyncIOMotorClient(settings.mongodb_uri)


def get_db() -> AsyncIOMotorDatabase:
    return get_client()[settings.mongodb_db]


@lru_cache
def get_snapshot_store() -> MongoSnapshotStore:
    return MongoSnapshotStore(get_db())


def close_client() -> None:
    if get_client.cache_info().currsize:
        get_client().close()
        get_client.cache_clear()
        get_snapshot_store.cache_clear()
