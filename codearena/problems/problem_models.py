from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from codearena import config

# ==================== ENUMS ====================

class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

# ==================== PROBLEM PARTS ====================

class Example(BaseModel):
    input: str
    output: str
    explanation: Optional[str] = None


class TestCase(BaseModel):
    input: str
    expected_output: str
    explanation: Optional[str] = None
    is_hidden: bool = False
    time_limit: Optional[int] = Field(None, gt=0)  # ms
    memory_limit: Optional[int] = Field(None, gt=0)  # MB


def validate_starter_code(v: Dict[str, str]) -> Dict[str, str]:
    unknown = [lang for lang in v if lang.lower() not in config.SUPPORTED_LANGUAGES]
    if unknown:
        raise ValueError(f"Unsupported starter code language(s): {unknown}")
    return {lang.lower(): code for lang, code in v.items()}

# ==================== PROBLEM MODELS ====================

class ProblemCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    difficulty: Difficulty
    tags: List[str] = []
    constraints: Optional[str] = None
    input_format: Optional[str] = None
    output_format: Optional[str] = None
    examples: List[Example] = Field(..., min_length=1)
    test_cases: List[TestCase] = Field(..., min_length=1)
    time_limit: int = Field(1000, gt=0)  # ms
    memory_limit: int = Field(256, gt=0)  # MB
    starter_code: Dict[str, str] = {}
    solution_code: Optional[str] = None
    notes: Optional[str] = None
    difficulty_rating: Optional[int] = Field(None, ge=1, le=5)
    is_public: bool = True

    @field_validator("starter_code")
    @classmethod
    def check_starter_code(cls, v):
        return validate_starter_code(v)

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v):
        return [tag.strip() for tag in v if tag.strip()]

