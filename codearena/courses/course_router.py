import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from motor.motor_asyncio import AsyncIOMotorDatabase

from codearena.admin.audit import log_audit
from codearena.auth.permissions import UserContext, can_view, get_optional_user, require_admin
from codearena.courses import course_service
from codearena.courses.models import CourseCreate, CourseUpdate, ModuleCreate, ModuleUpdate
from codearena.database import get_db
from codearena.problems.problem_models import Difficulty

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/courses", tags=["Courses"])


async def get_course_or_404(db: AsyncIOMotorDatabase, course_id: str, user: Optional[UserContext]) -> dict:
    """Private courses resolve for admins only"""
    course = await course_service.get_course(db, course_id)
    if not course or not can_view(course, user):
        raise HTTPException(status_code=404, detail="Course not found")
    return course


# ==================== COURSES ====================

@router.get("")
async def list_courses(
    category: Optional[str] = Query(None),
    difficulty: Optional[Difficulty] = Query(None),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    return await course_service.list_courses(
        db, category=category, difficulty=difficulty.value if difficulty else None
    )


@router.get("/{course_id}")
async def get_course(
    course_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: Optional[UserContext] = Depends(get_optional_user),
):
    course = await course_service.get_course_details(db, course_id)
    if not course or not can_view(course, user):
        raise HTTPException(status_code=404, detail="Course not found")
    return course


@router.post("", status_code=201)
async def create_course(
    data: CourseCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    course = await course_service.create_course(db, data.model_dump(mode="json"), admin.user_id)
    await log_audit(db, admin, "create_course", "course", course["course_id"])
    return course


@router.put("/{course_id}")
async def update_course(
    course_id: str,
    data: CourseUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    updates = data.model_dump(mode="json", exclude_unset=True)
    course = await course_service.update_course(db, course_id, updates, admin.user_id)
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    await log_audit(db, admin, "update_course", "course", course_id, {"fields": sorted(updates)})
    return course


@router.delete("/{course_id}", status_code=204)
async def delete_course(
    course_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    if not await course_service.delete_course(db, course_id):
        raise HTTPException(status_code=404, detail="Course not found")
    await log_audit(db, admin, "delete_course", "course", course_id)
    logger.info("Course %s deleted by %s", course_id, admin.user_id)
    return Response(status_code=204)


# ==================== MODULES ====================

@router.get("/{course_id}/modules")
async def list_modules(
    course_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: Optional[UserContext] = Depends(get_optional_user),
):
    await get_course_or_404(db, course_id, user)
    return await course_service.list_modules(db, course_id)


@router.post("/{course_id}/modules", status_code=201)
async def create_module(
    course_id: str,
    data: ModuleCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    await get_course_or_404(db, course_id, admin)
    module = await course_service.create_module(db, course_id, data.model_dump())
    await log_audit(db, admin, "create_module", "module", module["module_id"], {"course_id": course_id})
    return module


@router.put("/{course_id}/modules/{module_id}")
async def update_module(
    course_id: str,
    module_id: str,
    data: ModuleUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    module = await course_service.update_module(
        db, course_id, module_id, data.model_dump(exclude_unset=True)
    )
    if not module:
        raise HTTPException(status_code=404, detail="Module not found")
    await log_audit(db, admin, "update_module", "module", module_id, {"course_id": course_id})
    return module


@router.delete("/{course_id}/modules/{module_id}", status_code=204)
async def delete_module(
    course_id: str,
    module_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    if not await course_service.delete_module(db, course_id, module_id):
        raise HTTPException(status_code=404, detail="Module not found")
    await log_audit(db, admin, "delete_module", "module", module_id, {"course_id": course_id})
    return Response(status_code=204)
