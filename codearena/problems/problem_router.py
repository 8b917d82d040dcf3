import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from motor.motor_asyncio import AsyncIOMotorDatabase

from codearena.admin.audit import log_audit
from codearena.auth.permissions import UserContext, can_view, get_current_user, require_admin
from codearena.database import get_db
from codearena.problems import problem_service
from codearena.problems.problem_models import Difficulty, ProblemCreate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/problems", tags=["Problems"])


def present_problem(problem: dict, user: UserContext) -> dict:
    if user.is_admin:
        return problem
    return problem_service.strip_hidden_test_cases(problem)


@router.get("")
async def list_problems(
    difficulty: Optional[Difficulty] = Query(None),
    tag: Optional[str] = Query(None),
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    problems = await problem_service.list_problems(
        db,
        difficulty=difficulty.value if difficulty else None,
        tag=tag,
        include_private=user.is_admin,
    )
    return [present_problem(p, user) for p in problems]


@router.get("/{problem_id}")
async def get_problem(
    problem_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    problem = await problem_service.get_problem(db, problem_id)
    if not problem or not can_view(problem, user):
        raise HTTPException(status_code=404, detail="Problem not found")
    return present_problem(problem, user)


@router.post("", status_code=201)
async def create_problem(
    data: ProblemCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    problem = await problem_service.create_problem(db, data.model_dump(mode="json"), admin.user_id)
    await log_audit(db, admin, "create_problem", "problem", problem["problem_id"])
    logger.info("Problem %s created by %s", problem["problem_id"], admin.user_id)
    return problem


@router.put("/{problem_id}")
async def update_problem(
    problem_id: str,
    data: ProblemCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    problem = await problem_service.replace_problem(db, problem_id, data.model_dump(mode="json"), admin.user_id)
    if not problem:
        raise HTTPException(status_code=404, detail="Problem not found")
    await log_audit(db, admin, "update_problem", "problem", problem_id)
    return problem


@router.delete("/{problem_id}", status_code=204)
async def delete_problem(
    problem_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    deleted = await problem_service.delete_problem(db, problem_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Problem not found")
    await log_audit(db, admin, "delete_problem", "problem", problem_id)
    return Response(status_code=204)
