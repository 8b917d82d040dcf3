from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from codearena.common_models import reject_null_fields


class ContestStatus(str, Enum):
    UPCOMING = "upcoming"
    ACTIVE = "active"
    PAST = "past"


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Stored datetimes are naive UTC"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class ContestCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    start_time: datetime
    end_time: datetime
    problems: List[str] = []
    is_public: bool = True
    prize_pool: Optional[str] = None
    max_participants: Optional[int] = Field(None, ge=1)

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_times(cls, v):
        return to_naive_utc(v)

    @model_validator(mode="after")
    def check_window(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class ContestUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    problems: Optional[List[str]] = None
    is_public: Optional[bool] = None
    prize_pool: Optional[str] = None
    max_participants: Optional[int] = Field(None, ge=1)

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_times(cls, v):
        return to_naive_utc(v)

    @model_validator(mode="after")
    def check_required_fields(self):
        return reject_null_fields(self, ("title", "start_time", "end_time", "problems", "is_public"))
