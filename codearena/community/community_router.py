from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from codearena.admin.audit import log_audit
from codearena.auth.permissions import UserContext, get_current_user, require_admin
from codearena.community import community_service
from codearena.community.community_models import AnnouncementCreate, GroupCreate
from codearena.database import get_db

router = APIRouter(prefix="/api", tags=["Community"])


@router.get("/groups")
async def my_groups(
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    return await community_service.list_user_groups(db, user.user_id)


@router.post("/groups", status_code=201)
async def create_group(
    data: GroupCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    group = await community_service.create_group(db, data.model_dump(), admin.user_id)
    await log_audit(db, admin, "create_group", "group", group["group_id"])
    return group


@router.get("/announcements")
async def my_announcements(
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    return await community_service.list_user_announcements(db, user.user_id, user.role)


@router.post("/announcements", status_code=201)
async def create_announcement(
    data: AnnouncementCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    announcement = await community_service.create_announcement(db, data.model_dump(mode="json"), admin.user_id)
    await log_audit(db, admin, "create_announcement", "announcement", announcement["announcement_id"])
    return announcement
