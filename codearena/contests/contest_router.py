from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from motor.motor_asyncio import AsyncIOMotorDatabase

from codearena.admin.audit import log_audit
from codearena.auth.permissions import UserContext, can_view, get_current_user, get_optional_user, require_admin
from codearena.contests import contest_service
from codearena.contests.contest_models import ContestCreate, ContestStatus, ContestUpdate
from codearena.database import get_db

router = APIRouter(prefix="/api/contests", tags=["Contests"])


async def get_visible_contest(db: AsyncIOMotorDatabase, contest_id: str, user: Optional[UserContext]) -> dict:
    contest = await contest_service.get_contest(db, contest_id)
    if not contest or not can_view(contest, user):
        raise HTTPException(status_code=404, detail="Contest not found")
    return contest


@router.get("")
async def list_contests(
    status: Optional[ContestStatus] = Query(None),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    return await contest_service.list_contests(db, status.value if status else None)


@router.get("/{contest_id}")
async def get_contest(
    contest_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: Optional[UserContext] = Depends(get_optional_user),
):
    return await get_visible_contest(db, contest_id, user)


@router.post("", status_code=201)
async def create_contest(
    data: ContestCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    contest = await contest_service.create_contest(db, data.model_dump(), admin.user_id)
    await log_audit(db, admin, "create_contest", "contest", contest["contest_id"])
    return contest


@router.put("/{contest_id}")
async def update_contest(
    contest_id: str,
    data: ContestUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    updates = data.model_dump(exclude_unset=True)
    contest = await contest_service.update_contest(db, contest_id, updates)
    if not contest:
        raise HTTPException(status_code=404, detail="Contest not found")
    await log_audit(db, admin, "update_contest", "contest", contest_id, {"fields": sorted(updates)})
    return contest


@router.delete("/{contest_id}", status_code=204)
async def delete_contest(
    contest_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    admin: UserContext = Depends(require_admin),
):
    if not await contest_service.delete_contest(db, contest_id):
        raise HTTPException(status_code=404, detail="Contest not found")
    await log_audit(db, admin, "delete_contest", "contest", contest_id)
    return Response(status_code=204)


# ==================== PARTICIPATION ====================

@router.post("/{contest_id}/participate")
async def participate(
    contest_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    await get_visible_contest(db, contest_id, user)
    participant, created = await contest_service.register_participant(db, contest_id, user.user_id)
    return JSONResponse(
        status_code=201 if created else 200,
        content=jsonable_encoder({"participant": participant, "already_registered": not created}),
    )


@router.get("/{contest_id}/participants")
async def list_participants(
    contest_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: Optional[UserContext] = Depends(get_optional_user),
):
    await get_visible_contest(db, contest_id, user)
    return await contest_service.list_participants(db, contest_id)
