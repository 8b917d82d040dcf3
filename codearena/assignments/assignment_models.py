from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from codearena.common_models import reject_null_fields
from codearena.contests.contest_models import to_naive_utc
from codearena.problems.problem_models import Example, TestCase, validate_starter_code

# ==================== ENUMS ====================

class QuestionType(str, Enum):
    MCQ = "mcq"
    CODING = "coding"


class SubmissionStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    GRADED = "graded"

# ==================== QUESTION MODELS ====================

class MCQOption(BaseModel):
    id: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1)
    is_correct: bool = False


class AssignmentQuestion(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    id: str = Field(..., min_length=1)
    type: QuestionType
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    points: int = Field(..., ge=1)

    # MCQ
    options: Optional[List[MCQOption]] = None

    # Coding
    problem_statement: Optional[str] = None
    input_format: Optional[str] = None
    output_format: Optional[str] = None
    examples: List[Example] = []
    test_cases: List[TestCase] = []
    starter_code: Dict[str, str] = {}
    time_limit: Optional[int] = Field(None, gt=0)
    memory_limit: Optional[int] = Field(None, gt=0)

    @field_validator("starter_code")
    @classmethod
    def check_starter_code(cls, v):
        return validate_starter_code(v)

    @model_validator(mode="after")
    def check_mcq_options(self):
        if self.type == QuestionType.MCQ:
            options = self.options or []
            if len(options) < 2:
                raise ValueError(f'Question "{self.title}" must have at least 2 options')
            if not any(opt.is_correct for opt in options):
                raise ValueError(f'Question "{self.title}" must have at least one correct answer')
            option_ids = [opt.id for opt in options]
            if len(set(option_ids)) != len(option_ids):
                raise ValueError(f'Question "{self.title}" has duplicate option ids')
        return self

# ==================== ASSIGNMENT MODELS ====================

def check_unique_question_ids(questions: List[AssignmentQuestion]) -> List[AssignmentQuestion]:
    ids = [q.id for q in questions]
    if len(set(ids)) != len(ids):
        raise ValueError("Question ids must be unique within an assignment")
    return questions


class AssignmentCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    course_tag: str = Field(..., min_length=1)
    deadline: Optional[datetime] = None
    questions: List[AssignmentQuestion] = Field(..., min_length=1)
    max_attempts: int = Field(3, ge=1)
    is_visible: bool = True
    auto_grade: bool = True
    assigned_to: List[str] = []
    assigned_groups: List[str] = []

    @field_validator("deadline")
    @classmethod
    def normalize_deadline(cls, v):
        return to_naive_utc(v)

    @field_validator("questions")
    @classmethod
    def check_questions(cls, v):
        return check_unique_question_ids(v)


class AssignmentUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    course_tag: Optional[str] = Field(None, min_length=1)
    deadline: Optional[datetime] = None
    questions: Optional[List[AssignmentQuestion]] = Field(None, min_length=1)
    max_attempts: Optional[int] = Field(None, ge=1)
    is_visible: Optional[bool] = None
    auto_grade: Optional[bool] = None
    assigned_to: Optional[List[str]] = None
    assigned_groups: Optional[List[str]] = None

    @field_validator("deadline")
    @classmethod
    def normalize_deadline(cls, v):
        return to_naive_utc(v)

    @field_validator("questions")
    @classmethod
    def check_questions(cls, v):
        return check_unique_question_ids(v) if v is not None else v

    @model_validator(mode="after")
    def check_required_fields(self):
        return reject_null_fields(self, (
            "title", "course_tag", "questions", "max_attempts", "is_visible",
            "auto_grade", "assigned_to", "assigned_groups",
        ))

# ==================== SUBMISSION MODELS ====================

class QuestionAnswer(BaseModel):
    question_id: str
    selected_option_id: Optional[str] = None
    code: Optional[str] = None
    language: Optional[str] = None


class SaveSubmissionRequest(BaseModel):
    answers: List[QuestionAnswer] = []


class SubmitAssignmentRequest(BaseModel):
    answers: Optional[List[QuestionAnswer]] = None


class QuestionGrade(BaseModel):
    question_id: str
    score: float = Field(..., ge=0)
    feedback: Optional[str] = None


class GradeSubmissionRequest(BaseModel):
    grades: List[QuestionGrade] = []
    feedback: Optional[str] = None
