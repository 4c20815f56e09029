"""
Display-name roster: the locally curated list of tracked players.

The CSV is re-read for every ranking computation so that edits to the
file show up on the next cache miss without a restart.
"""

import asyncio
import csv
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from pydantic import ValidationError

from api.exceptions import RosterLoadError
from api.logging_config import get_logger
from shared.models.roster import RosterEntry

logger = get_logger(__name__)


class DisplayNameResolver:
    """Pure lookup from battle-tag (or character id) to curated display name."""

    def __init__(self, entries: Iterable[RosterEntry] = ()):
        self._by_btag: Dict[str, str] = {}
        self._by_id: Dict[str, str] = {}
        self._size = 0
        for entry in entries:
            if not entry.name:
                continue
            self._size += 1
            if entry.btag:
                self._by_btag[entry.btag] = entry.name
            self._by_id[entry.id] = entry.name

    def __len__(self) -> int:
        return self._size

    def lookup(self, btag: Optional[str] = None, player_id=None) -> Optional[str]:
        if btag and btag in self._by_btag:
            return self._by_btag[btag]
        if player_id is not None:
            return self._by_id.get(str(player_id))
        return None

    def resolve(
        self,
        btag: Optional[str] = None,
        player_id=None,
        account_tag: Optional[str] = None,
    ) -> str:
        name = self.lookup(btag, player_id)
        if name:
            return name
        if account_tag:
            return account_tag
        if btag:
            prefix = btag.split("#")[0]
            if prefix:
                return prefix
        return "Unknown"


class Roster:
    def __init__(self, entries: List[RosterEntry]):
        self.entries = entries
        self.resolver = DisplayNameResolver(entries)

    @property
    def character_ids(self) -> List[str]:
        seen = set()
        ids = []
        for entry in self.entries:
            if entry.id not in seen:
                seen.add(entry.id)
                ids.append(entry.id)
        return ids


class RosterLoader:
    def __init__(self, path: str):
        self.path = Path(path)

    def _read_rows(self) -> List[RosterEntry]:
        if not self.path.is_file():
            raise RosterLoadError(str(self.path), "file does not exist")
        entries = []
        skipped = 0
        try:
            with self.path.open(newline="", encoding="utf-8-sig") as handle:
                for row in csv.DictReader(handle):
                    try:
                        entries.append(
                            RosterEntry(
                                id=(row.get("id") or "").strip(),
                                btag=row.get("btag"),
                                name=row.get("name"),
                                challonge_id=row.get("challongeId"),
                            )
                        )
                    except ValidationError:
                        skipped += 1
        except (OSError, csv.Error, UnicodeDecodeError) as e:
            raise RosterLoadError(str(self.path), str(e)) from e
        if skipped:
            logger.warning(
                "Skipped roster rows without a character id",
                extra={"context": {"path": str(self.path), "skipped": skipped}},
            )
        return entries

    async def load(self) -> Roster:
        entries = await asyncio.to_thread(self._read_rows)
        roster = Roster(entries)
        logger.debug(
            f"Loaded {len(entries)} roster rows, {len(roster.resolver)} display names"
        )
        return roster
