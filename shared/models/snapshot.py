from pydantic import BaseModel, Field
from datetime import datetime


class SnapshotInfo(BaseModel):
    """Listing entry for a persisted ranking snapshot."""

    snapshot_id: str
    created_at: datetime
    age_hours: float = Field(ge=0.0)
    player_count: int = Field(ge=0)
