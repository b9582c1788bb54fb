from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from goalcast.models.enums import ChallengeType
from goalcast.schemas.fields import naive_utc


class ChallengeIn(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    type: ChallengeType = ChallengeType.ONE_TIME
    start_date: datetime
    end_date: datetime
    is_public: bool = True
    max_participants: Optional[int] = Field(default=None, gt=0)
    tags: list[str] = Field(default_factory=list)

    @field_validator("start_date", "end_date")
    @classmethod
    def to_naive_utc(cls, value: datetime) -> datetime:
        return naive_utc(value)

    @model_validator(mode="after")
    def check_dates(self) -> "ChallengeIn":
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class ChallengeUpdateIn(BaseModel):
    content: str = Field(min_length=1, max_length=2000)
