from pydantic import BaseModel, Field, field_validator
from typing import Optional


class RosterEntry(BaseModel):
    """One curated row of the display-name roster."""

    id: str = Field(..., min_length=1, description="SC2Pulse character id")
    btag: Optional[str] = None
    name: Optional[str] = None
    challonge_id: Optional[str] = None

    @field_validator("btag", "name", "challonge_id", mode="before")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v
