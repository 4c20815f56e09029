"""
Shared fixtures for the ladder ranking tests.

Upstream HTTP is faked with ``httpx.MockTransport``; time is driven by a
manual clock so TTL expiry never depends on the wall clock.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from api.config import Settings
from api.metrics import Metrics, metrics as global_metrics
from api.pulse_client import PulseClient
from api.ranking.activity import ActivityClassifier
from api.ranking.roster import Roster
from api.ranking.service import RankingService, create_ranking_service
from shared.models.ladder import LadderTeam
from shared.models.ranking import RankingSnapshot
from shared.models.roster import RosterEntry
from shared.models.snapshot import SnapshotInfo

# 2024-01-15 16:30 UTC is 10:30 in America/Costa_Rica
FIXED_NOW = datetime(2024, 1, 15, 16, 30, tzinfo=timezone.utc)


class ManualClock:
    def __init__(self, start: float = 1000.0):
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


class StaticRosterLoader:
    def __init__(self, entries: Optional[List[RosterEntry]] = None):
        self.entries = entries or []
        self.loads = 0

    async def load(self) -> Roster:
        self.loads += 1
        return Roster(list(self.entries))


class InMemorySnapshotStore:
    def __init__(self, now: Callable[[], datetime] = lambda: FIXED_NOW):
        self.snapshots: Dict[str, RankingSnapshot] = {}
        self.pruned_with: List[int] = []
        self._now = now

    async def save_snapshot(self, snapshot: RankingSnapshot) -> str:
        snapshot_id = f"snap-{len(self.snapshots) + 1}"
        self.snapshots[snapshot_id] = snapshot
        return snapshot_id

    async def list_snapshots(self, max_age_hours: int = 168) -> List[SnapshotInfo]:
        now = self._now()
        infos = []
        for snapshot_id, snapshot in self.snapshots.items():
            age = (now - snapshot.created_at).total_seconds() / 3600.0
            if age <= max_age_hours:
                infos.append(
                    SnapshotInfo(
                        snapshot_id=snapshot_id,
                        created_at=snapshot.created_at,
                        age_hours=max(0.0, age),
                        player_count=len(snapshot.data),
                    )
                )
        return sorted(infos, key=lambda i: i.created_at, reverse=True)

    async def get_snapshot(self, snapshot_id: str) -> Optional[RankingSnapshot]:
        return self.snapshots.get(snapshot_id)

    async def prune(self, retention_days: int) -> int:
        self.pruned_with.append(retention_days)
        return 0


class FakePulse:
    """Routes SC2Pulse paths to canned payloads and records every request."""

    def __init__(
        self,
        teams: Optional[List[Dict[str, Any]]] = None,
        seasons: Optional[List[Dict[str, Any]]] = None,
    ):
        self.teams = teams if teams is not None else []
        self.seasons = (
            seasons
            if seasons is not None
            else [{"battlenetId": 58, "region": "US"}, {"battlenetId": 57, "region": "US"}]
        )
        self.search_results: List[Dict[str, Any]] = []
        self.requests: List[httpx.Request] = []
        self.failures: Dict[str, List[int]] = {}
        self.delay = 0.0

    def fail(self, path: str, *statuses: int) -> None:
        """Answer the next requests to ``path`` with the given statuses."""
        self.failures.setdefault(path, []).extend(statuses)

    def calls(self, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith(path)]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        for path, statuses in self.failures.items():
            if request.url.path.endswith(path) and statuses:
                return httpx.Response(statuses.pop(0), json={"error": "boom"})
        if request.url.path.endswith("season/list/all"):
            return httpx.Response(200, json=self.seasons)
        if request.url.path.endswith("group/team"):
            return httpx.Response(200, json=self.teams)
        if request.url.path.endswith("character/search"):
            return httpx.Response(200, json=self.search_results)
        return httpx.Response(404)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def make_team(
    btag: Optional[str] = "Alpha#1",
    race_games: Optional[Dict[str, int]] = None,
    rating: Optional[int] = 3000,
    wins: int = 10,
    losses: int = 5,
    ties: int = 0,
    league_type: Optional[int] = 4,
    last_played: Optional[str] = "2024-01-15T16:00:00Z",
    character_id: int = 101,
    account_id: int = 11,
    account_tag: Optional[str] = None,
    clan_tag: Optional[str] = None,
) -> Dict[str, Any]:
    member: Dict[str, Any] = {
        "character": {"id": character_id, "name": f"{(btag or 'x').split('#')[0]}#123"},
        "account": {"battleTag": btag, "id": account_id, "tag": account_tag},
    }
    if race_games is not None:
        member["raceGames"] = race_games
    if clan_tag:
        member["clan"] = {"tag": clan_tag}
    return {
        "id": character_id * 10,
        "season": 58,
        "region": "US",
        "rating": rating,
        "wins": wins,
        "losses": losses,
        "ties": ties,
        "league": {"type": league_type},
        "lastPlayed": last_played,
        "members": [member],
    }


def team_model(**kwargs) -> LadderTeam:
    return LadderTeam.model_validate(make_team(**kwargs))


@pytest.fixture(autouse=True)
def reset_global_metrics():
    global_metrics.reset()
    yield
    global_metrics.reset()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        sc2pulse_rps=0,
        pulse_retry_backoff_ms=0,
        pulse_max_retries=2,
        ranking_min_games=0,
    )


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def classifier() -> ActivityClassifier:
    return ActivityClassifier("America/Costa_Rica", 30, 24, now=lambda: FIXED_NOW)


@pytest.fixture
def fake_pulse() -> FakePulse:
    return FakePulse()


@pytest.fixture
def test_metrics() -> Metrics:
    return Metrics()


@pytest.fixture
def roster_loader() -> StaticRosterLoader:
    return StaticRosterLoader(
        [
            RosterEntry(id="101", btag="Alpha#1", name="Alpha"),
            RosterEntry(id="102", btag="Bravo#2", name="Bravo"),
            RosterEntry(id="103", btag="Charlie#3"),
        ]
    )


@pytest.fixture
async def pulse_client(settings, fake_pulse, test_metrics):
    client = PulseClient(
        settings, transport=fake_pulse.transport(), metrics=test_metrics
    )
    yield client
    await client.close()


@pytest.fixture
def ranking_service(
    settings, pulse_client, roster_loader, classifier, clock, test_metrics
) -> RankingService:
    return create_ranking_service(
        settings,
        client=pulse_client,
        roster_loader=roster_loader,
        classifier=classifier,
        clock=clock,
        metrics=test_metrics,
    )
