from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, field_validator


class SaveClock(BaseModel, frozen=True):
    """The instant a save (and its mention reconciliation) happened."""

    now: datetime

    @field_validator("now")
    @classmethod
    def now_must_be_timezone_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None or value.utcoffset() is None:
            raise ValueError("SaveClock value must be timezone-aware")
        return value

    @classmethod
    def utcnow(cls) -> "SaveClock":
        return cls(now=datetime.now(timezone.utc))
