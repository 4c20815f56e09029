"""Tests for the daily baseline snapshot and its persistence."""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from api.exceptions import SnapshotNotFoundError
from api.ranking.daily import DailySnapshotService, snapshot_expiry
from shared.models.ranking import RankedPlayer, RankingSnapshot
from tests.conftest import InMemorySnapshotStore, make_team

CR = ZoneInfo("America/Costa_Rica")


@pytest.fixture
def store():
    return InMemorySnapshotStore()


@pytest.fixture
def daily(ranking_service, settings, store, clock, fake_pulse):
    fake_pulse.teams = [
        make_team(btag="Alpha#1", character_id=101, rating=3000, race_games={"TERRAN": 12}),
        make_team(btag="Bravo#2", character_id=102, rating=4000, race_games={"ZERG": 15}),
    ]
    return DailySnapshotService(ranking_service, settings, store=store, clock=clock)


class TestSnapshotExpiry:
    def test_next_local_midnight(self):
        now = datetime(2024, 1, 15, 10, 30, tzinfo=CR)
        assert snapshot_expiry(now, 24) == datetime(2024, 1, 16, tzinfo=CR)

    def test_multi_day_periods_round_up(self):
        now = datetime(2024, 1, 15, 23, 59, tzinfo=CR)
        assert snapshot_expiry(now, 25) == datetime(2024, 1, 17, tzinfo=CR)
        assert snapshot_expiry(now, 1) == datetime(2024, 1, 16, tzinfo=CR)


class TestDailySnapshot:
    async def test_built_from_live_ranking(self, daily):
        snapshot = await daily.get_daily_snapshot()

        assert [p.btag for p in snapshot.data] == ["Bravo#2", "Alpha#1"]
        assert snapshot.created_at.utcoffset() == timedelta(hours=-6)
        assert snapshot.expiry == datetime(2024, 1, 16, tzinfo=CR)

    async def test_cached_until_midnight(self, daily, fake_pulse, clock):
        first = await daily.get_daily_snapshot()
        # 10:30 local, so the baseline lives 13.5 hours
        clock.advance(13 * 3600)
        assert await daily.get_daily_snapshot() is first

        clock.advance(3600)
        assert await daily.get_daily_snapshot() is not first

    async def test_empty_ranking_is_not_cached(self, daily, fake_pulse):
        fake_pulse.teams = []
        assert (await daily.get_daily_snapshot()).data == []
        assert daily.cache.get("dailySnapshot") is None

    async def test_positions_against_baseline(self, daily, ranking_service, fake_pulse):
        await daily.get_daily_snapshot()
        ranking_service.clear_caches()
        fake_pulse.teams = [
            make_team(btag="Alpha#1", character_id=101, rating=4500, race_games={"TERRAN": 20}),
            make_team(btag="Bravo#2", character_id=102, rating=4000, race_games={"ZERG": 16}),
            make_team(btag="Charlie#3", character_id=103, rating=3000, race_games={"ZERG": 11}),
        ]

        ranking = await daily.get_ranking_with_positions()

        assert [(p.btag, p.position_change_indicator) for p in ranking] == [
            ("Alpha#1", "up"),
            ("Bravo#2", "down"),
            ("Charlie#3", "none"),
        ]
        assert ranking[2].previous_position is None
        stats = await daily.movement_statistics()
        assert (stats.up, stats.down, stats.new) == (1, 1, 1)

    async def test_display_filter_uses_minimum_games(self, daily, settings):
        settings.ranking_min_games = 13
        snapshot = await daily.get_daily_snapshot()
        assert [p.btag for p in snapshot.data] == ["Bravo#2"]


class TestPersistence:
    async def test_save_prunes_with_retention(self, daily, store, settings):
        snapshot_id = await daily.save_snapshot()

        assert snapshot_id in store.snapshots
        assert store.pruned_with == [settings.snapshot_retention_days]
        [info] = await daily.list_snapshots()
        assert info.player_count == 2

    async def test_restore_replaces_baseline(self, daily, store):
        restored = RankingSnapshot(
            data=[RankedPlayer(name="Old", btag="Old#1", rating_last=1)],
            created_at=datetime(2024, 1, 14, 12, tzinfo=timezone.utc),
            expiry=datetime(2024, 1, 15, tzinfo=CR),
        )
        store.snapshots["old"] = restored

        await daily.restore_snapshot("old")

        assert await daily.get_daily_snapshot() is restored

    async def test_restore_unknown_snapshot(self, daily):
        with pytest.raises(SnapshotNotFoundError):
            await daily.restore_snapshot("missing")

    async def test_clear_forces_rebuild(self, daily):
        first = await daily.get_daily_snapshot()
        daily.clear()
        assert await daily.get_daily_snapshot() is not first
