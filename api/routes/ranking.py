from fastapi import APIRouter, Depends
from typing import List

from api.ranking.daily import DailySnapshotService, get_daily_snapshot_service
from api.ranking.filters import ranking_statistics
from shared.models.ranking import RankedPlayer, RankingSnapshot

router = APIRouter(prefix="/ranking", tags=["ranking"])


@router.get("", response_model=List[RankedPlayer])
async def get_ranking(daily: DailySnapshotService = Depends(get_daily_snapshot_service)):
    return await daily.get_ranking_with_positions()


@router.get("/stats")
async def get_ranking_stats(daily: DailySnapshotService = Depends(get_daily_snapshot_service)):
    ranking = await daily.get_ranking_with_positions()
    movement = await daily.movement_statistics()
    return {
        **ranking_statistics(ranking).model_dump(),
        "movement": movement.model_dump(),
    }


@router.get("/snapshot", response_model=RankingSnapshot)
async def get_daily_snapshot(daily: DailySnapshotService = Depends(get_daily_snapshot_service)):
    return await daily.get_daily_snapshot()
