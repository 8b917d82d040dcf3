from fastapi import APIRouter, Depends, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorDatabase

from codearena.auth.permissions import UserContext, get_current_user, require_admin
from codearena.courses import course_service
from codearena.courses.course_router import get_course_or_404
from codearena.courses.models import ModuleCompleteRequest
from codearena.database import get_db

router = APIRouter(prefix="/api/courses", tags=["Enrollments"])


@router.post("/{course_id}/enroll")
async def enroll(
    course_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    """
    Enroll the caller. Repeat calls are idempotent: 201 on the first
    enrollment, 200 with the existing record afterwards.
    """
    await get_course_or_404(db, course_id, user)
    enrollment, created = await course_service.enroll_user(db, course_id, user.user_id)
    return JSONResponse(
        status_code=201 if created else 200,
        content=jsonable_encoder({**enrollment, "already_enrolled": not created}),
    )


@router.get("/{course_id}/enrollments")
async def list_enrollments(
    course_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    await get_course_or_404(db, course_id, admin)
    return await course_service.list_course_enrollments(db, course_id)


@router.get("/{course_id}/progress")
async def get_progress(
    course_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    await get_course_or_404(db, course_id, user)
    enrollment = await course_service.get_enrollment(db, course_id, user.user_id)
    modules = await course_service.get_module_progress(db, course_id, user.user_id)
    return {
        "course_id": course_id,
        "enrolled": enrollment is not None,
        "progress": enrollment.get("progress", 0.0) if enrollment else 0.0,
        "completed_modules": enrollment.get("completed_modules", []) if enrollment else [],
        "modules": modules,
    }


@router.post("/{course_id}/modules/{module_id}/complete")
async def complete_module(
    course_id: str,
    module_id: str,
    data: ModuleCompleteRequest = None,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    await get_course_or_404(db, course_id, user)
    module = await db.course_modules.find_one({"course_id": course_id, "module_id": module_id})
    if not module:
        raise HTTPException(status_code=404, detail="Module not found")

    data = data or ModuleCompleteRequest()
    result = await course_service.complete_module(
        db, course_id, module_id, user.user_id, data.time_spent, data.notes
    )
    return {"success": True, **result}


@router.post("/{course_id}/modules/{module_id}/bookmark")
async def bookmark_module(
    course_id: str,
    module_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    await get_course_or_404(db, course_id, user)
    module = await db.course_modules.find_one({"course_id": course_id, "module_id": module_id})
    if not module:
        raise HTTPException(status_code=404, detail="Module not found")

    bookmarked = await course_service.toggle_bookmark(db, course_id, module_id, user.user_id)
    return {"success": True, "bookmarked": bookmarked}
