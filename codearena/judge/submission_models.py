from typing import Optional

from pydantic import BaseModel, Field, field_validator

from codearena import config


def check_language(v: str) -> str:
    if v.lower() not in config.SUPPORTED_LANGUAGES:
        raise ValueError(f"Language must be one of: {config.SUPPORTED_LANGUAGES}")
    return v.lower()


class SubmissionCreate(BaseModel):
    problem_id: str
    code: str = Field(..., min_length=1, max_length=65536)
    language: str

    @field_validator("language")
    @classmethod
    def validate_language(cls, v):
        return check_language(v)


class RunCodeRequest(SubmissionCreate):
    """Same payload as a submission, evaluated against visible cases only"""


class ExecuteRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=65536)
    language: str
    input: Optional[str] = None
    expected_output: Optional[str] = None

    @field_validator("language")
    @classmethod
    def validate_language(cls, v):
        return check_language(v)
