from datetime import datetime
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from codearena.database import generate_id, serialize_many, serialize_mongo

# ==================== GROUPS ====================

async def create_group(db: AsyncIOMotorDatabase, group_data: dict, creator_id: str) -> dict:
    now = datetime.utcnow()
    group = {
        "group_id": generate_id("GRP"),
        **group_data,
        "created_by": creator_id,
        "created_at": now,
        "updated_at": now,
    }
    await db.groups.insert_one(group)
    return serialize_mongo(group)


async def list_groups(db: AsyncIOMotorDatabase) -> List[dict]:
    cursor = db.groups.find({}).sort("created_at", -1)
    return serialize_many(await cursor.to_list(length=None))


async def get_user_group_ids(db: AsyncIOMotorDatabase, user_id: str) -> List[str]:
    groups = await db.groups.find(
        {"$or": [{"members": user_id}, {"instructors": user_id}]},
        {"group_id": 1}
    ).to_list(length=None)
    return [g["group_id"] for g in groups]


async def list_user_groups(db: AsyncIOMotorDatabase, user_id: str) -> List[dict]:
    cursor = db.groups.find(
        {"$or": [{"members": user_id}, {"instructors": user_id}]}
    ).sort("created_at", -1)
    return serialize_many(await cursor.to_list(length=None))


async def update_group(db: AsyncIOMotorDatabase, group_id: str, updates: dict) -> Optional[dict]:
    updates["updated_at"] = datetime.utcnow()
    result = await db.groups.update_one({"group_id": group_id}, {"$set": updates})
    if result.matched_count == 0:
        return None
    return serialize_mongo(await db.groups.find_one({"group_id": group_id}))


async def delete_group(db: AsyncIOMotorDatabase, group_id: str) -> bool:
    result = await db.groups.delete_one({"group_id": group_id})
    if result.deleted_count == 0:
        return False
    await db.assignments.update_many(
        {"assigned_groups": group_id},
        {"$pull": {"assigned_groups": group_id}}
    )
    return True

# ==================== ANNOUNCEMENTS ====================

async def create_announcement(db: AsyncIOMotorDatabase, announcement_data: dict, creator_id: str) -> dict:
    now = datetime.utcnow()
    announcement = {
        "announcement_id": generate_id("ANN"),
        **announcement_data,
        "created_by": creator_id,
        "created_at": now,
        "updated_at": now,
    }
    await db.announcements.insert_one(announcement)
    return serialize_mongo(announcement)


async def list_announcements(db: AsyncIOMotorDatabase) -> List[dict]:
    cursor = db.announcements.find({}).sort("created_at", -1)
    return serialize_many(await cursor.to_list(length=None))


async def list_user_announcements(db: AsyncIOMotorDatabase, user_id: str, role: str) -> List[dict]:
    """Visible announcements addressed to everyone, the user's role, the user or one of their groups"""
    audience = ["all", role, user_id] + await get_user_group_ids(db, user_id)

    cursor = db.announcements.find({
        "is_visible": True,
        "target_audience": {"$in": audience},
    }).sort("created_at", -1)
    return serialize_many(await cursor.to_list(length=None))


async def delete_announcement(db: AsyncIOMotorDatabase, announcement_id: str) -> bool:
    result = await db.announcements.delete_one({"announcement_id": announcement_id})
    return result.deleted_count > 0
