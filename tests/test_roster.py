"""Tests for the display-name roster."""

import pytest

from api.exceptions import RosterLoadError
from api.ranking.roster import DisplayNameResolver, RosterLoader
from shared.models.roster import RosterEntry


@pytest.fixture
def roster_csv(tmp_path):
    path = tmp_path / "ladder.csv"
    path.write_text(
        "id,btag,name,challongeId\n"
        "101,Alpha#1,Alpha,alpha_cr\n"
        "102,Bravo#2,,\n"
        ",Ghost#0,Ghost,\n"
        "101,Alpha#1,Alpha again,\n",
        encoding="utf-8",
    )
    return path


class TestRosterLoader:
    async def test_loads_rows_and_skips_missing_ids(self, roster_csv):
        roster = await RosterLoader(str(roster_csv)).load()

        assert [e.id for e in roster.entries] == ["101", "102", "101"]
        assert roster.entries[0].challonge_id == "alpha_cr"
        assert roster.entries[1].name is None
        assert roster.character_ids == ["101", "102"]

    async def test_missing_file_raises(self, tmp_path):
        with pytest.raises(RosterLoadError) as exc_info:
            await RosterLoader(str(tmp_path / "nope.csv")).load()
        assert exc_info.value.status_code == 500

    async def test_file_is_reread_on_every_load(self, roster_csv):
        loader = RosterLoader(str(roster_csv))
        await loader.load()
        roster_csv.write_text("id,btag,name\n201,New#1,Newcomer\n", encoding="utf-8")

        roster = await loader.load()
        assert roster.character_ids == ["201"]


class TestDisplayNameResolver:
    @pytest.fixture
    def resolver(self):
        return DisplayNameResolver(
            [
                RosterEntry(id="101", btag="Alpha#1", name="Alpha"),
                RosterEntry(id="102", btag=None, name="Bravo"),
                RosterEntry(id="103", btag="Quiet#3"),
            ]
        )

    def test_lookup_by_battle_tag_then_id(self, resolver):
        assert resolver.resolve(btag="Alpha#1") == "Alpha"
        assert resolver.resolve(btag="Other#9", player_id=102) == "Bravo"
        assert len(resolver) == 2

    def test_fallbacks(self, resolver):
        assert resolver.resolve(btag="Quiet#3", account_tag="QuietTag") == "QuietTag"
        assert resolver.resolve(btag="Quiet#3") == "Quiet"
        assert resolver.resolve() == "Unknown"
