"""
Ranking orchestrator.

``get_ranking()`` is the single entry point for the live ladder ranking:
roster -> current season -> ranked teams -> consolidation -> main race ->
sort, behind a short TTL cache and a single-flight gate. Failures inside the
pipeline are logged and resolve to an empty ranking for every waiting caller.
Pass-through operations (search, raw team fetch) propagate their errors.
"""

import time
from functools import lru_cache, partial
from typing import Any, Callable, Dict, List, Optional, Sequence

from api.config import Settings, get_settings
from api.exceptions import UpstreamError
from api.logging_config import get_logger
from api.metrics import Metrics, metrics as default_metrics
from api.pulse_client import PulseClient
from api.ranking.activity import ActivityClassifier
from api.ranking.cache import SingleFlight, TTLCache
from api.ranking.consolidator import consolidate_teams
from api.ranking.main_race import build_ranking
from api.ranking.roster import RosterLoader
from shared.models.ladder import LadderTeam
from shared.models.ranking import RankedPlayer

logger = get_logger(__name__)

RANKING_CACHE_KEY = "snapShot"
SEASON_CACHE_KEY = "current-season"


class RankingService:
    def __init__(
        self,
        settings: Settings,
        client: Optional[PulseClient] = None,
        roster_loader: Optional[RosterLoader] = None,
        classifier: Optional[ActivityClassifier] = None,
        clock: Callable[[], float] = time.monotonic,
        metrics: Metrics = default_metrics,
    ):
        self.settings = settings
        self.metrics = metrics
        self.client = client or PulseClient(settings, metrics=metrics)
        self.roster_loader = roster_loader or RosterLoader(settings.roster_csv_path)
        self.classifier = classifier or ActivityClassifier(
            settings.ranking_timezone,
            online_threshold_minutes=settings.online_threshold_minutes,
            recent_threshold_hours=settings.online_threshold_hours,
        )
        self.live_cache: TTLCache[List[RankedPlayer]] = TTLCache(
            settings.pulse_cache_ttl_ms / 1000.0, clock
        )
        self.season_cache: TTLCache[int] = TTLCache(
            settings.season_cache_ttl_seconds, clock
        )
        self._gate = SingleFlight()
        self._generation = 0

    async def get_ranking(self) -> List[RankedPlayer]:
        cached = self.live_cache.get(RANKING_CACHE_KEY)
        if cached is not None:
            self.metrics.record_cache(hit=True)
            return cached

        self.metrics.record_cache(hit=False)
        # generation is captured before the task is scheduled
        generation = self._generation
        return await self._gate.run(
            RANKING_CACHE_KEY, partial(self._refresh_ranking, generation)
        )

    async def _refresh_ranking(self, generation: int) -> List[RankedPlayer]:
        started = time.perf_counter()
        try:
            ranking = await self._compute_ranking()
        except Exception as e:
            logger.error(
                f"Ranking refresh failed, serving an empty ranking: {e}",
                exc_info=not isinstance(e, UpstreamError),
                extra={
                    "context": {
                        "error_type": type(e).__name__,
                        "details": getattr(e, "details", None),
                    }
                },
            )
            return []

        if generation == self._generation:
            self.live_cache.set(RANKING_CACHE_KEY, ranking)
        logger.info(
            "Ranking refreshed",
            extra={
                "context": {
                    "players": len(ranking),
                    "elapsed_ms": round((time.perf_counter() - started) * 1000),
                }
            },
        )
        return ranking

    async def _compute_ranking(self) -> List[RankedPlayer]:
        roster = await self.roster_loader.load()
        character_ids = roster.character_ids
        if not character_ids:
            logger.warning("Roster has no players, ranking is empty")
            return []

        season = await self.get_current_season()
        teams = await self.client.fetch_ranked_teams(character_ids, season)
        players = consolidate_teams(teams)
        ranking, excluded = build_ranking(players, roster.resolver, self.classifier)
        if excluded:
            logger.debug(f"Excluded {excluded} players without usable race data")
        return ranking

    async def get_current_season(self) -> int:
        cached = self.season_cache.get(SEASON_CACHE_KEY)
        if cached is not None:
            return cached

        generation = self._generation

        async def fetch_season() -> int:
            season = await self.client.get_current_season()
            if generation == self._generation:
                self.season_cache.set(SEASON_CACHE_KEY, season)
            return season

        return await self._gate.run(SEASON_CACHE_KEY, fetch_season)

    async def search_player(self, term: str) -> List[Dict[str, Any]]:
        try:
            return await self.client.search_characters(term)
        except UpstreamError as e:
            logger.error(
                f"Player search failed: {e.message}",
                extra={"context": {"term": term, "code": e.code}},
            )
            raise

    async def fetch_ranked_teams(
        self, character_ids: Sequence[str], season_id: int
    ) -> List[LadderTeam]:
        try:
            return await self.client.fetch_ranked_teams(character_ids, season_id)
        except UpstreamError as e:
            logger.error(
                f"Team fetch failed: {e.message}",
                extra={
                    "context": {
                        "characters": len(character_ids),
                        "season": season_id,
                        "code": e.code,
                    }
                },
            )
            raise

    def clear_caches(self) -> None:
        """Drop cached data and in-flight markers; the next call always refetches."""
        self._generation += 1
        self.live_cache.clear()
        self.season_cache.clear()
        self._gate.clear()
        logger.info("Ranking caches cleared")

    def get_config(self) -> Dict[str, Any]:
        return {
            "max_retries": self.client.max_retries,
            "chunk_size": self.client.chunk_size,
            "api_timeout_ms": self.settings.pulse_timeout_ms,
            "rate_limit_rps": self.settings.sc2pulse_rps,
            "cache_ttl_ms": self.settings.pulse_cache_ttl_ms,
            "online_threshold_minutes": self.classifier.online_threshold_minutes,
            "recent_threshold_hours": self.classifier.recent_threshold_hours,
            "timezone": self.settings.ranking_timezone,
        }

    async def close(self) -> None:
        await self.client.close()


def create_ranking_service(settings: Optional[Settings] = None, **kwargs) -> RankingService:
    """Build a standalone service, e.g. a test-local instance with fakes injected."""
    return RankingService(settings or get_settings(), **kwargs)


@lru_cache
def get_ranking_service() -> RankingService:
    """Process-wide instance used by the HTTP routes."""
    return create_ranking_service()
