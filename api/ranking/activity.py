"""
Online / recent / inactive classification from a last-played timestamp.

All wall-clock comparisons happen in one canonical time zone so that
"today" means the same thing for every visitor.
"""

from datetime import datetime, timezone
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from shared.models.ranking import ActivityStatus


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 string as an aware datetime; naive values are UTC."""
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ActivityClassifier:
    def __init__(
        self,
        tz_name: str = "America/Costa_Rica",
        online_threshold_minutes: int = 30,
        recent_threshold_hours: int = 24,
        now: Callable[[], datetime] = _utc_now,
    ):
        self.tz = ZoneInfo(tz_name)
        self.online_threshold_minutes = online_threshold_minutes
        self.recent_threshold_hours = recent_threshold_hours
        self._now = now

    def now(self) -> datetime:
        return self._now().astimezone(self.tz)

    def _local(self, last_played: Optional[str]) -> Optional[datetime]:
        parsed = parse_timestamp(last_played)
        if parsed is None:
            return None
        try:
            return parsed.astimezone(self.tz)
        except (OverflowError, ValueError):
            return None

    def minutes_since(self, last_played: Optional[str]) -> Optional[float]:
        played = self._local(last_played)
        if played is None:
            return None
        return (self.now() - played).total_seconds() / 60.0

    def is_online(self, last_played: Optional[str]) -> bool:
        minutes = self.minutes_since(last_played)
        return minutes is not None and minutes <= self.online_threshold_minutes

    def status(self, last_played: Optional[str]) -> ActivityStatus:
        minutes = self.minutes_since(last_played)
        if minutes is None:
            return "unknown"
        if minutes <= self.online_threshold_minutes:
            return "online"
        if minutes / 60.0 <= self.recent_threshold_hours:
            return "recent"
        return "inactive"

    def last_date_played(self, last_played: Optional[str]) -> str:
        """``h:mm AM`` for today in the canonical zone, ``{n}d ago`` otherwise, ``-`` when unknown."""
        played = self._local(last_played)
        if played is None:
            return "-"
        days = (self.now().date() - played.date()).days
        if days <= 0:
            hour = played.hour % 12 or 12
            meridiem = "AM" if played.hour < 12 else "PM"
            return f"{hour}:{played.minute:02d} {meridiem}"
        return f"{days}d ago"
