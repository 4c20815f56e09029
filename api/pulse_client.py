"""
SC2Pulse HTTP client.

- One shared ``httpx.AsyncClient`` for every call to the ladder API.
- ``get(path, params)`` returns the decoded JSON body, retries network errors,
  timeouts, 429 and 5xx with exponential backoff, and fails fast on other 4xx.
- Requests are spaced to respect the configured requests-per-second budget.
- Terminal failures raise ``UpstreamError`` carrying the HTTP status or the
  error class (``timeout`` / ``network``).
"""

import asyncio
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import httpx
from pydantic import ValidationError

from api.config import Settings
from api.exceptions import SeasonUnavailableError, UpstreamError
from api.logging_config import get_logger
from api.metrics import Metrics, metrics as default_metrics
from shared.models.ladder import LadderTeam

logger = get_logger(__name__)

ENDPOINTS = {
    "search_character": "character/search",
    "list_seasons": "season/list/all",
    "group_team": "group/team",
}

LADDER_QUEUE = "LOTV_1V1"
LADDER_RACES = ("TERRAN", "PROTOSS", "ZERG", "RANDOM")
MAX_TEAMS_PER_REQUEST = 400

Params = Union[Dict[str, Any], List[Tuple[str, Any]], None]


def _classify_status(status: int) -> str:
    if status >= 500:
        return "http5xx"
    if status >= 400:
        return "http4xx"
    return "other"


class RequestSpacer:
    """Spaces request start times to at most ``rps`` per second."""

    def __init__(self, rps: float, clock=time.monotonic, sleep=asyncio.sleep):
        self.interval = 1.0 / rps if rps > 0 else 0.0
        self._clock = clock
        self._sleep = sleep
        self._next_available = 0.0

    async def wait(self) -> None:
        if self.interval <= 0:
            return
        now = self._clock()
        delay = max(0.0, self._next_available - now)
        self._next_available = max(now, self._next_available) + self.interval
        if delay > 0:
            await self._sleep(delay)


class PulseClient:
    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        metrics: Metrics = default_metrics,
        sleep=asyncio.sleep,
    ):
        self.base_url = settings.pulse_base_url.rstrip("/") + "/"
        self.timeout = settings.pulse_timeout_ms / 1000.0
        self.max_retries = settings.pulse_max_retries
        self.backoff = settings.pulse_retry_backoff_ms / 1000.0
        self.chunk_size = settings.pulse_batch_size
        self.season_region = settings.pulse_season_region
        self.metrics = metrics
        self._sleep = sleep
        self._spacer = RequestSpacer(settings.sc2pulse_rps, sleep=sleep)
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _attempt(self, path: str, params: Params) -> Any:
        await self._spacer.wait()
        started = time.perf_counter()
        try:
            response = await self._client.get(path, params=params)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            self.metrics.record_upstream_error("timeout")
            raise UpstreamError(f"SC2Pulse request timed out: {e}", code="timeout")
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            self.metrics.record_upstream_error(_classify_status(status))
            raise UpstreamError(f"SC2Pulse returned HTTP {status}", code=status)
        except httpx.RequestError as e:
            self.metrics.record_upstream_error("network")
            raise UpstreamError(f"Failed to connect to SC2Pulse: {e}", code="network")

        self.metrics.pulse_req_total += 1
        self.metrics.observe_pulse_latency((time.perf_counter() - started) * 1000.0)
        try:
            return response.json()
        except ValueError as e:
            self.metrics.record_upstream_error("other")
            raise UpstreamError(f"SC2Pulse returned invalid JSON: {e}", code="invalid_json")

    async def get(self, path: str, params: Params = None) -> Any:
        attempt = 0
        while True:
            try:
                return await self._attempt(path, params)
            except UpstreamError as e:
                if not e.retriable or attempt >= self.max_retries:
                    e.context.update({"path": path, "attempts": attempt + 1})
                    e.details.update(e.context)
                    raise
                delay = self.backoff * (2 ** attempt)
                attempt += 1
                logger.info(
                    f"Retrying SC2Pulse request after {e.code}",
                    extra={"context": {"path": path, "attempt": attempt, "delay_s": delay}},
                )
                if delay > 0:
                    await self._sleep(delay)

    async def search_characters(self, term: str) -> List[Dict[str, Any]]:
        data = await self.get(ENDPOINTS["search_character"], params={"term": term})
        if isinstance(data, list):
            return data
        return [data] if data else []

    async def list_seasons(self) -> List[Dict[str, Any]]:
        data = await self.get(ENDPOINTS["list_seasons"])
        return data if isinstance(data, list) else []

    async def get_current_season(self) -> int:
        """Most recent ``battlenetId`` of the preferred region, else of any region."""
        seasons = [
            s
            for s in await self.list_seasons()
            if isinstance(s, dict) and isinstance(s.get("battlenetId"), int)
        ]
        preferred = [s for s in seasons if s.get("region") == self.season_region]
        candidates = preferred or seasons
        if not candidates:
            raise SeasonUnavailableError()
        return max(s["battlenetId"] for s in candidates)

    def _group_team_params(self, character_ids: Sequence[str], season_id: int):
        params: List[Tuple[str, Any]] = [("season", season_id), ("queue", LADDER_QUEUE)]
        params.extend(("race", race) for race in LADDER_RACES)
        params.append(
            ("limit", min(len(character_ids) * len(LADDER_RACES), MAX_TEAMS_PER_REQUEST))
        )
        params.extend(("characterId", cid) for cid in character_ids)
        return params

    async def fetch_ranked_teams(
        self, character_ids: Sequence[str], season_id: int
    ) -> List[LadderTeam]:
        if not character_ids:
            return []
        teams: List[LadderTeam] = []
        skipped = 0
        for start in range(0, len(character_ids), self.chunk_size):
            chunk = list(character_ids[start : start + self.chunk_size])
            data = await self.get(
                ENDPOINTS["group_team"], params=self._group_team_params(chunk, season_id)
            )
            rows = data if isinstance(data, list) else [data] if data else []
            for row in rows:
                try:
                    teams.append(LadderTeam.model_validate(row))
                except ValidationError:
                    skipped += 1
        if skipped:
            self.metrics.data_quality_dropped_total += skipped
            logger.warning(
                "Skipped malformed ladder teams",
                extra={"context": {"skipped": skipped, "season": season_id}},
            )
        return teams
