from fastapi import APIRouter, Depends, Query
from typing import List

from api.auth import require_admin_token
from api.logging_config import get_logger
from api.ranking.daily import DailySnapshotService, get_daily_snapshot_service
from api.ranking.service import RankingService, get_ranking_service
from shared.models.snapshot import SnapshotInfo

logger = get_logger(__name__)

router = APIRouter(
    prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin_token)]
)


@router.post("/refresh")
async def refresh_caches(
    service: RankingService = Depends(get_ranking_service),
    daily: DailySnapshotService = Depends(get_daily_snapshot_service),
):
    service.clear_caches()
    daily.clear()
    logger.info("Caches cleared by admin request")
    return {"message": "Caches cleared"}


@router.post("/snapshots", status_code=201)
async def save_snapshot(daily: DailySnapshotService = Depends(get_daily_snapshot_service)):
    snapshot_id = await daily.save_snapshot()
    return {"snapshot_id": snapshot_id}


@router.get("/snapshots", response_model=List[SnapshotInfo])
async def list_snapshots(
    max_age: int = Query(168, ge=1, le=24 * 365),
    daily: DailySnapshotService = Depends(get_daily_snapshot_service),
):
    return await daily.list_snapshots(max_age)


@router.post("/snapshots/{snapshot_id}/restore")
async def restore_snapshot(
    snapshot_id: str,
    daily: DailySnapshotService = Depends(get_daily_snapshot_service),
):
    snapshot = await daily.restore_snapshot(snapshot_id)
    return {
        "message": "Snapshot restored",
        "snapshot_id": snapshot_id,
        "player_count": len(snapshot.data),
    }


@router.get("/metrics")
async def get_metrics(service: RankingService = Depends(get_ranking_service)):
    return {"metrics": service.metrics.snapshot(), "config": service.get_config()}
