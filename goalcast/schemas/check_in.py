from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from goalcast.schemas.fields import naive_utc


class CheckInIn(BaseModel):
    goal_id: int
    is_completed: bool = True
    note: Optional[str] = None
    date: Optional[datetime] = None

    @field_validator("date")
    @classmethod
    def to_naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return naive_utc(value)

    @field_validator("note")
    @classmethod
    def blank_note(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None
