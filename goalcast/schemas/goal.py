from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from goalcast.models.enums import DurationUnit, GoalStatus, GoalType, Visibility
from goalcast.schemas.fields import naive_utc


class GoalIn(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    type: GoalType = GoalType.ONE_TIME
    duration: int = Field(gt=0)
    duration_unit: DurationUnit = DurationUnit.DAYS
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    category: str = "general"
    visibility: Visibility = Visibility.PUBLIC
    twitter_share: bool = False
    linkedin_share: bool = False
    bio_update: bool = False
    reminder_frequency: str = "daily"
    tags: list[str] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("start_date", "end_date")
    @classmethod
    def to_naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return naive_utc(value)


class GoalStatusIn(BaseModel):
    status: GoalStatus
