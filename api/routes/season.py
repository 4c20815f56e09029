from fastapi import APIRouter, Depends

from api.ranking.service import RankingService, get_ranking_service

router = APIRouter(prefix="/season", tags=["season"])


@router.get("/current")
async def get_current_season(service: RankingService = Depends(get_ranking_service)):
    return {"season": await service.get_current_season()}
