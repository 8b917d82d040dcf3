import re
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from codearena import config
from codearena.common_models import reject_null_fields
from codearena.problems.problem_models import Difficulty

# ==================== HELPERS ====================

def normalize_youtube_url(url: str) -> str:
    """
    Convert any youtube link to embed format
    """

    # already embed
    if "embed/" in url:
        return url

    # watch?v=
    match = re.search(r"youtube\.com/.*[?&]v=([^&]+)", url)
    if match:
        return f"https://www.youtube.com/embed/{match.group(1)}"

    # youtu.be/
    match = re.search(r"youtu\.be/([^?&]+)", url)
    if match:
        return f"https://www.youtube.com/embed/{match.group(1)}"

    return url


def validate_video_url(v: Optional[str]) -> Optional[str]:
    if v is None or not v.strip():
        return None
    v = v.strip()
    if not v.startswith(("http://", "https://")):
        raise ValueError("video_url must be an http(s) URL")
    return normalize_youtube_url(v)

# ==================== COURSE MODELS ====================

class CourseCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    is_public: bool = True
    category: Optional[str] = None
    difficulty: Optional[Difficulty] = None
    tags: List[str] = []
    thumbnail_url: Optional[str] = None
    problems: List[str] = []


class CourseUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    is_public: Optional[bool] = None
    category: Optional[str] = None
    difficulty: Optional[Difficulty] = None
    tags: Optional[List[str]] = None
    thumbnail_url: Optional[str] = None
    problems: Optional[List[str]] = None

    @model_validator(mode="after")
    def check_required_fields(self):
        return reject_null_fields(self, ("title", "description", "is_public", "tags", "problems"))

# ==================== MODULE MODELS ====================

class ModuleCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    order: int = Field(0, ge=0)
    text_content: Optional[str] = None
    video_url: Optional[str] = None
    code_example: Optional[str] = None
    language: Optional[str] = None
    expected_output: Optional[str] = None

    @field_validator("video_url")
    @classmethod
    def check_video_url(cls, v):
        return validate_video_url(v)

    @field_validator("language")
    @classmethod
    def check_language(cls, v):
        if v is not None and v.lower() not in config.SUPPORTED_LANGUAGES:
            raise ValueError(f"Language must be one of: {config.SUPPORTED_LANGUAGES}")
        return v.lower() if v else v


class ModuleUpdate(ModuleCreate):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    order: Optional[int] = Field(None, ge=0)

    @model_validator(mode="after")
    def check_required_fields(self):
        return reject_null_fields(self, ("title", "order"))

# ==================== PROGRESS MODELS ====================

class ModuleCompleteRequest(BaseModel):
    time_spent: int = Field(0, ge=0)  # seconds
    notes: Optional[str] = None
