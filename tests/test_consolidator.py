"""Tests for grouping per-race ladder teams by battle-tag."""

from api.metrics import metrics
from api.ranking.consolidator import consolidate_teams, extract_race_games
from shared.models.ladder import LadderMember
from tests.conftest import team_model


class TestRaceExtraction:
    def test_race_games_map_is_preferred(self):
        member = LadderMember(raceGames={"terran": 4, "Zerg": 2}, terranGamesPlayed=99)
        assert extract_race_games(member) == {"TERRAN": 4, "ZERG": 2}

    def test_falls_back_to_legacy_fields(self):
        member = LadderMember(protossGamesPlayed=12, zergGamesPlayed=0)
        assert extract_race_games(member) == {"PROTOSS": 12}

    def test_negative_counts_are_ignored(self):
        member = LadderMember(raceGames={"TERRAN": -3}, randomGamesPlayed=7)
        assert extract_race_games(member) == {"RANDOM": 7}

    def test_negative_legacy_counts_are_ignored(self):
        member = LadderMember(terranGamesPlayed=10, zergGamesPlayed=-20)
        assert extract_race_games(member) == {"TERRAN": 10}

    def test_missing_member_yields_empty(self):
        assert extract_race_games(None) == {}
        assert extract_race_games(LadderMember()) == {}


class TestConsolidateTeams:
    def test_race_games_are_summed_across_teams(self):
        teams = [
            team_model(btag="A#1", race_games={"TERRAN": 30, "PROTOSS": 5}),
            team_model(btag="A#1", race_games={"PROTOSS": 25, "ZERG": 10}),
        ]
        players = consolidate_teams(teams)

        assert list(players) == ["A#1"]
        assert players["A#1"].race_games == {"TERRAN": 30, "PROTOSS": 30, "ZERG": 10}

    def test_scalar_fields_keep_input_order(self):
        teams = [
            team_model(btag="A#1", rating=3100, wins=3, race_games={"ZERG": 3}),
            team_model(btag="B#2", rating=2000, race_games={"TERRAN": 1}),
            team_model(btag="A#1", rating=3500, wins=9, race_games={"TERRAN": 9}),
        ]
        player = consolidate_teams(teams)["A#1"]

        assert len(player) == 2
        assert player.rating == [3100, 3500]
        assert player.wins == [3, 9]
        assert player.race_games_by_team == [{"ZERG": 3}, {"TERRAN": 9}]

    def test_later_team_fills_in_account_fields(self):
        teams = [
            team_model(btag="A#1", account_tag=None, race_games={"ZERG": 1}),
            team_model(btag="A#1", account_tag="Ace", clan_tag="CR", race_games={"ZERG": 1}),
        ]
        player = consolidate_teams(teams)["A#1"]

        assert player.account.tag == "Ace"
        assert player.account.battleTag == "A#1"
        assert player.clan.tag == "CR"

    def test_teams_without_battle_tag_are_dropped_and_counted(self):
        teams = [
            team_model(btag=None, race_games={"ZERG": 1}),
            team_model(btag="", race_games={"ZERG": 1}),
            team_model(btag="A#1", race_games={"ZERG": 1}),
        ]
        players = consolidate_teams(teams)

        assert list(players) == ["A#1"]
        assert metrics.data_quality_dropped_total == 2

    def test_empty_input(self):
        assert consolidate_teams([]) == {}
