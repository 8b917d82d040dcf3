from datetime import datetime
from typing import List, Optional

from fastapi import HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from codearena.contests.contest_models import ContestStatus
from codearena.database import generate_id, serialize_many, serialize_mongo


def derive_contest_status(now: datetime, start_time: datetime, end_time: datetime) -> str:
    """Status is computed at read time and never stored"""
    if now < start_time:
        return ContestStatus.UPCOMING.value
    if now <= end_time:
        return ContestStatus.ACTIVE.value
    return ContestStatus.PAST.value


def with_status(contest: dict, now: Optional[datetime] = None) -> dict:
    now = now or datetime.utcnow()
    contest["status"] = derive_contest_status(now, contest["start_time"], contest["end_time"])
    contest["participant_count"] = len(contest.get("participants", []))
    return contest

# ==================== CONTEST CRUD ====================

async def create_contest(db: AsyncIOMotorDatabase, contest_data: dict, creator_id: str) -> dict:
    now = datetime.utcnow()
    contest = {
        "contest_id": generate_id("CON"),
        **contest_data,
        "participants": [],
        "created_by": creator_id,
        "created_at": now,
        "updated_at": now,
    }
    await db.contests.insert_one(contest)
    return with_status(serialize_mongo(contest))


async def get_contest(db: AsyncIOMotorDatabase, contest_id: str) -> Optional[dict]:
    contest = await db.contests.find_one({"contest_id": contest_id})
    if not contest:
        return None
    return with_status(serialize_mongo(contest))


async def list_contests(db: AsyncIOMotorDatabase, status: Optional[str] = None, include_private: bool = False) -> List[dict]:
    query = {} if include_private else {"is_public": {"$ne": False}}
    cursor = db.contests.find(query).sort("start_time", -1)
    now = datetime.utcnow()
    contests = [with_status(c, now) for c in serialize_many(await cursor.to_list(length=None))]
    if status:
        contests = [c for c in contests if c["status"] == status]
    return contests


async def update_contest(db: AsyncIOMotorDatabase, contest_id: str, updates: dict) -> Optional[dict]:
    contest = await db.contests.find_one({"contest_id": contest_id})
    if not contest:
        return None

    start_time = updates.get("start_time") or contest["start_time"]
    end_time = updates.get("end_time") or contest["end_time"]
    if end_time <= start_time:
        raise HTTPException(status_code=400, detail="end_time must be after start_time")

    updates["updated_at"] = datetime.utcnow()
    await db.contests.update_one({"contest_id": contest_id}, {"$set": updates})
    return await get_contest(db, contest_id)


async def delete_contest(db: AsyncIOMotorDatabase, contest_id: str) -> bool:
    result = await db.contests.delete_one({"contest_id": contest_id})
    if result.deleted_count == 0:
        return False
    await db.contest_participants.delete_many({"contest_id": contest_id})
    return True

# ==================== PARTICIPATION ====================

async def get_participant(db: AsyncIOMotorDatabase, contest_id: str, user_id: str) -> Optional[dict]:
    return serialize_mongo(await db.contest_participants.find_one({"contest_id": contest_id, "user_id": user_id}))


async def register_participant(db: AsyncIOMotorDatabase, contest_id: str, user_id: str) -> tuple[dict, bool]:
    """
    Register a user for a contest

    Returns:
        (participant, created): created is False when the user was already registered

    Raises:
        404: Unknown contest
        400: Contest is over or full
    """
    contest = await get_contest(db, contest_id)
    if not contest:
        raise HTTPException(status_code=404, detail="Contest not found")

    existing = await get_participant(db, contest_id, user_id)
    if existing:
        return existing, False

    if contest["status"] == ContestStatus.PAST.value:
        raise HTTPException(status_code=400, detail="Contest has already ended")

    max_participants = contest.get("max_participants")
    if max_participants and contest["participant_count"] >= max_participants:
        raise HTTPException(status_code=400, detail="Contest is full")

    participant = {
        "contest_id": contest_id,
        "user_id": user_id,
        "score": 0,
        "rank": None,
        "submissions": 0,
        "registered_at": datetime.utcnow(),
    }
    try:
        await db.contest_participants.insert_one(participant)
    except DuplicateKeyError:
        # Concurrent registration for the same user/contest won the insert
        return await get_participant(db, contest_id, user_id), False
    await db.contests.update_one(
        {"contest_id": contest_id},
        {"$addToSet": {"participants": user_id}}
    )
    return serialize_mongo(participant), True


async def list_participants(db: AsyncIOMotorDatabase, contest_id: str) -> List[dict]:
    cursor = db.contest_participants.find({"contest_id": contest_id}, {"_id": 0})
    participants = await cursor.to_list(length=None)
    participants.sort(key=lambda p: (-(p.get("score") or 0), p["registered_at"]))
    for index, participant in enumerate(participants):
        participant["rank"] = index + 1
    return participants
