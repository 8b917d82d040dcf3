from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from codearena.auth.permissions import UserContext, get_current_user
from codearena.courses import course_service
from codearena.database import get_db
from codearena.leaderboard import leaderboard_service

router = APIRouter(prefix="/api", tags=["Leaderboards"])


@router.get("/leaderboard")
async def leaderboard(
    limit: int = Query(10, ge=1, le=100),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    return await leaderboard_service.get_leaderboard(db, limit)


# ==================== CURRENT USER ====================

@router.get("/users/me/stats")
async def my_stats(
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    return await leaderboard_service.get_user_stats(db, user.profile)


@router.get("/users/me/enrollments")
async def my_enrollments(
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    return await course_service.list_user_enrollments(db, user.user_id)


@router.get("/users/me/progress")
async def my_progress(
    db: AsyncIOMotorDatabase = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    return await leaderboard_service.get_user_progress(db, user.user_id)
