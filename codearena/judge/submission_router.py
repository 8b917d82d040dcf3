from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from codearena.auth.permissions import UserContext, get_current_user
from codearena.database import get_db
from codearena.judge import mock_executor, submission_service
from codearena.judge.submission_models import ExecuteRequest, RunCodeRequest, SubmissionCreate

router = APIRouter(prefix="/api", tags=["Submissions"])


# ==================== RUN / EXECUTE ====================

@router.post("/run-code")
@router.post("/problems/run")
async def run_code(
    data: RunCodeRequest,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    """Evaluate against visible test cases only; nothing is stored"""
    return await submission_service.run_code(
        db, data.problem_id, data.code, data.language, include_private=user.is_admin
    )


@router.post("/execute")
@router.post("/modules/execute")
async def execute(
    data: ExecuteRequest,
    user: UserContext = Depends(get_current_user),
):
    """Single free-form run, used by course module code examples"""
    result = mock_executor.execute_code(
        data.code,
        data.language,
        input_data=data.input,
        expected_output=data.expected_output,
    )
    return result.to_dict()


# ==================== SUBMISSIONS ====================

@router.post("/submissions", status_code=201)
async def create_submission(
    data: SubmissionCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    return await submission_service.create_submission(
        db, user.user_id, data.problem_id, data.code, data.language,
        include_private=user.is_admin,
    )


@router.get("/submissions")
async def list_submissions(
    problem_id: Optional[str] = Query(None),
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    return await submission_service.list_user_submissions(db, user.user_id, problem_id)


@router.get("/submissions/{submission_id}")
async def get_submission(
    submission_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    submission = await submission_service.get_submission(db, submission_id)
    if not submission:
        raise HTTPException(status_code=404, detail="Submission not found")
    if submission["user_id"] != user.user_id and not user.is_admin:
        raise HTTPException(status_code=403, detail="Access denied")
    return submission
