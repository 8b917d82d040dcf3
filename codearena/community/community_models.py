from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from codearena.common_models import reject_null_fields


class AnnouncementPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class GroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    description: str = ""
    members: List[str] = []
    instructors: List[str] = []
    course_id: Optional[str] = None


class GroupUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    description: Optional[str] = None
    members: Optional[List[str]] = None
    instructors: Optional[List[str]] = None
    course_id: Optional[str] = None

    @model_validator(mode="after")
    def check_required_fields(self):
        return reject_null_fields(self, ("name", "members", "instructors"))


class AnnouncementCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    type: str = "general"  # general, assignment, contest, course, maintenance
    target_audience: List[str] = ["all"]  # "all", a role, user ids or group ids
    is_visible: bool = True
    priority: AnnouncementPriority = AnnouncementPriority.NORMAL
