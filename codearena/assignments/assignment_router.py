from fastapi import APIRouter, Depends, HTTPException, Response
from motor.motor_asyncio import AsyncIOMotorDatabase

from codearena.admin.audit import log_audit
from codearena.assignments import assignment_service
from codearena.assignments.assignment_models import (
    AssignmentCreate,
    AssignmentUpdate,
    GradeSubmissionRequest,
    SaveSubmissionRequest,
    SubmitAssignmentRequest,
)
from codearena.auth.permissions import UserContext, get_current_user, require_admin
from codearena.database import get_db

router = APIRouter(prefix="/api/assignments", tags=["Assignments"])


async def get_assignment_or_404(db: AsyncIOMotorDatabase, assignment_id: str) -> dict:
    assignment = await assignment_service.get_assignment(db, assignment_id)
    if not assignment:
        raise HTTPException(status_code=404, detail="Assignment not found")
    return assignment


async def get_accessible_assignment(db: AsyncIOMotorDatabase, assignment_id: str, user: UserContext) -> dict:
    assignment = await get_assignment_or_404(db, assignment_id)
    if not user.is_admin:
        await assignment_service.ensure_student_access(db, assignment, user.user_id)
    return assignment


# ==================== READS ====================

@router.get("")
async def list_assignments(
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    if user.is_admin:
        return await assignment_service.list_assignments(db)
    return await assignment_service.list_for_student(db, user.user_id)


@router.get("/course/{course_tag}")
async def list_course_assignments(
    course_tag: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    if user.is_admin:
        return await assignment_service.list_assignments(db, {"course_tag": course_tag})
    return await assignment_service.list_for_student(db, user.user_id, course_tag)


@router.get("/{assignment_id}")
async def get_assignment(
    assignment_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    assignment = await get_accessible_assignment(db, assignment_id, user)
    if user.is_admin:
        return assignment
    return assignment_service.strip_answers(assignment)


# ==================== ADMIN CRUD ====================

@router.post("", status_code=201)
async def create_assignment(
    data: AssignmentCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    assignment = await assignment_service.create_assignment(db, data.model_dump(), admin.user_id)
    await log_audit(db, admin, "create_assignment", "assignment", assignment["assignment_id"])
    return assignment


@router.put("/{assignment_id}")
async def update_assignment(
    assignment_id: str,
    data: AssignmentUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    updates = data.model_dump(exclude_unset=True)
    assignment = await assignment_service.update_assignment(db, assignment_id, updates)
    if not assignment:
        raise HTTPException(status_code=404, detail="Assignment not found")
    await log_audit(db, admin, "update_assignment", "assignment", assignment_id, {"fields": sorted(updates)})
    return assignment


@router.delete("/{assignment_id}", status_code=204)
async def delete_assignment(
    assignment_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    if not await assignment_service.delete_assignment(db, assignment_id):
        raise HTTPException(status_code=404, detail="Assignment not found")
    await log_audit(db, admin, "delete_assignment", "assignment", assignment_id)
    return Response(status_code=204)


# ==================== SUBMISSIONS ====================

@router.get("/{assignment_id}/submissions")
async def list_submissions(
    assignment_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    await get_assignment_or_404(db, assignment_id)
    if user.is_admin:
        return await assignment_service.list_submissions(db, assignment_id)
    return await assignment_service.list_submissions(db, assignment_id, user.user_id)


@router.get("/{assignment_id}/submission")
async def get_my_submission(
    assignment_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    await get_accessible_assignment(db, assignment_id, user)
    return await assignment_service.get_latest_submission(db, assignment_id, user.user_id)


@router.post("/{assignment_id}/submission")
async def save_submission(
    assignment_id: str,
    data: SaveSubmissionRequest,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    assignment = await get_accessible_assignment(db, assignment_id, user)
    answers = [a.model_dump(exclude_unset=True) for a in data.answers]
    return await assignment_service.save_draft(db, assignment, user.user_id, answers)


@router.post("/{assignment_id}/submit")
async def submit_assignment(
    assignment_id: str,
    data: SubmitAssignmentRequest = None,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    assignment = await get_accessible_assignment(db, assignment_id, user)
    answers = [a.model_dump(exclude_unset=True) for a in data.answers] if data and data.answers else None
    return await assignment_service.submit_attempt(db, assignment, user.user_id, answers)


@router.post("/{assignment_id}/submissions/{submission_id}/grade")
async def grade_submission(
    assignment_id: str,
    submission_id: str,
    data: GradeSubmissionRequest,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    assignment = await get_assignment_or_404(db, assignment_id)
    submission = await assignment_service.grade_submission(
        db, assignment, submission_id, [g.model_dump() for g in data.grades], data.feedback
    )
    if not submission:
        raise HTTPException(status_code=404, detail="Submission not found")
    await log_audit(db, admin, "grade_submission", "assignment_submission", submission_id)
    return submission
