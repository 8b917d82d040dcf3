import logging
import re
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel

from codearena.admin import analytics
from codearena.admin.audit import get_audit_trail, log_audit
from codearena.assignments import assignment_service
from codearena.auth.permissions import UserContext, public_user, require_admin
from codearena.community import community_service
from codearena.community.community_models import AnnouncementCreate, GroupCreate, GroupUpdate
from codearena.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])

ALLOWED_ROLES = ("student", "admin")


class RoleUpdateRequest(BaseModel):
    role: str


# ==================== ANALYTICS ====================

@router.get("/analytics")
async def platform_analytics(
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    return await analytics.get_platform_analytics(db)


@router.get("/course-stats")
async def course_stats(
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    return await analytics.get_course_stats(db)


# ==================== USERS ====================

@router.get("/users")
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    search: Optional[str] = None,
    role: Optional[str] = None,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    """
    List users with pagination and filters

    Filters:
    - search: Search by name or email
    - role: student or admin
    """
    query = {}

    if search:
        pattern = re.escape(search)
        query["$or"] = [
            {"email": {"$regex": pattern, "$options": "i"}},
            {"first_name": {"$regex": pattern, "$options": "i"}},
            {"last_name": {"$regex": pattern, "$options": "i"}},
        ]

    if role:
        query["role"] = role

    skip = (page - 1) * limit
    users = await db.users.find(query).sort("created_at", -1).skip(skip).limit(limit).to_list(length=limit)
    total_count = await db.users.count_documents(query)

    return {
        "users": [public_user(u) for u in users],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total_count,
            "total_pages": (total_count + limit - 1) // limit
        }
    }


@router.get("/users/{user_id}/role")
async def get_user_role(
    user_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    user = await db.users.find_one({"user_id": user_id}, {"user_id": 1, "role": 1})
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return {"user_id": user_id, "role": user.get("role", "student")}


@router.patch("/users/{user_id}/role")
async def update_user_role(
    user_id: str,
    data: RoleUpdateRequest,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    if data.role not in ALLOWED_ROLES:
        raise HTTPException(status_code=400, detail="Invalid role")

    user = await db.users.find_one({"user_id": user_id})
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    await db.users.update_one({"user_id": user_id}, {"$set": {"role": data.role}})
    await log_audit(db, admin, "change_role", "user", user_id, {"from": user.get("role"), "to": data.role})
    logger.info("Role of %s changed to %s by %s", user_id, data.role, admin.user_id)

    user["role"] = data.role
    return public_user(user)


# ==================== ASSIGNMENTS ====================

@router.get("/assignments")
async def list_assignments(
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    return await assignment_service.list_assignments(db)


# ==================== GROUPS ====================

@router.get("/groups")
async def list_groups(
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    return await community_service.list_groups(db)


@router.post("/groups", status_code=201)
async def create_group(
    data: GroupCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    group = await community_service.create_group(db, data.model_dump(), admin.user_id)
    await log_audit(db, admin, "create_group", "group", group["group_id"])
    return group


@router.put("/groups/{group_id}")
async def update_group(
    group_id: str,
    data: GroupUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    updates = data.model_dump(exclude_unset=True)
    group = await community_service.update_group(db, group_id, updates)
    if not group:
        raise HTTPException(status_code=404, detail="Group not found")
    await log_audit(db, admin, "update_group", "group", group_id, {"fields": sorted(updates)})
    return group


@router.delete("/groups/{group_id}", status_code=204)
async def delete_group(
    group_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    if not await community_service.delete_group(db, group_id):
        raise HTTPException(status_code=404, detail="Group not found")
    await log_audit(db, admin, "delete_group", "group", group_id)
    return Response(status_code=204)


# ==================== ANNOUNCEMENTS ====================

@router.get("/announcements")
async def list_announcements(
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    return await community_service.list_announcements(db)


@router.post("/announcements", status_code=201)
async def create_announcement(
    data: AnnouncementCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    announcement = await community_service.create_announcement(db, data.model_dump(mode="json"), admin.user_id)
    await log_audit(db, admin, "create_announcement", "announcement", announcement["announcement_id"])
    return announcement


@router.delete("/announcements/{announcement_id}", status_code=204)
async def delete_announcement(
    announcement_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    if not await community_service.delete_announcement(db, announcement_id):
        raise HTTPException(status_code=404, detail="Announcement not found")
    await log_audit(db, admin, "delete_announcement", "announcement", announcement_id)
    return Response(status_code=204)


# ==================== AUDIT ====================

@router.get("/audit-logs")
async def audit_logs(
    target_type: Optional[str] = None,
    target_id: Optional[str] = None,
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    return await get_audit_trail(db, target_type, target_id, limit)
