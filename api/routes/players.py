from fastapi import APIRouter, Depends, Query
from typing import Any, Dict, List

from api.exceptions import ValidationException
from api.ranking.service import RankingService, get_ranking_service

router = APIRouter(prefix="/players", tags=["players"])


@router.get("/search", response_model=List[Dict[str, Any]])
async def search_players(
    term: str = Query(..., min_length=1, max_length=64),
    service: RankingService = Depends(get_ranking_service),
):
    term = term.strip()
    if not term:
        raise ValidationException("Search term must not be blank", field="term")
    return await service.search_player(term)
