from datetime import datetime
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from codearena.database import generate_id, serialize_many, serialize_mongo

# ==================== COURSE CRUD ====================

async def create_course(db: AsyncIOMotorDatabase, course_data: dict, creator_id: str) -> dict:
    now = datetime.utcnow()
    course = {
        "course_id": generate_id("CRS"),
        **course_data,
        "modules": [],
        "enrollment_count": 0,
        "created_by": creator_id,
        "created_at": now,
        "updated_at": now,
    }
    await db.courses.insert_one(course)
    return serialize_mongo(course)


async def get_course(db: AsyncIOMotorDatabase, course_id: str) -> Optional[dict]:
    return serialize_mongo(await db.courses.find_one({"course_id": course_id}))


async def list_courses(
    db: AsyncIOMotorDatabase,
    category: Optional[str] = None,
    difficulty: Optional[str] = None,
    include_private: bool = False,
) -> List[dict]:
    query = {} if include_private else {"is_public": {"$ne": False}}
    if category:
        query["category"] = category
    if difficulty:
        query["difficulty"] = difficulty

    cursor = db.courses.find(query).sort("created_at", -1)
    return serialize_many(await cursor.to_list(length=None))


async def get_course_details(db: AsyncIOMotorDatabase, course_id: str) -> Optional[dict]:
    """Course with ordered modules and enrollment summary"""
    course = await get_course(db, course_id)
    if not course:
        return None

    modules = await list_modules(db, course_id)
    enrollments = await db.course_enrollments.find(
        {"course_id": course_id}, {"user_id": 1}
    ).to_list(length=None)

    course["modules"] = modules
    course["enrolled_users"] = [e["user_id"] for e in enrollments]
    course["enrollment_count"] = len(enrollments)
    course["module_count"] = len(modules)
    return course


async def update_course(db: AsyncIOMotorDatabase, course_id: str, updates: dict, editor_id: str) -> Optional[dict]:
    updates["updated_by"] = editor_id
    updates["updated_at"] = datetime.utcnow()
    result = await db.courses.update_one({"course_id": course_id}, {"$set": updates})
    if result.matched_count == 0:
        return None
    return await get_course(db, course_id)


async def delete_course(db: AsyncIOMotorDatabase, course_id: str) -> bool:
    """Delete a course with its modules, enrollments and module progress"""
    course = await db.courses.find_one({"course_id": course_id})
    if not course:
        return False

    await db.course_modules.delete_many({"course_id": course_id})
    await db.course_enrollments.delete_many({"course_id": course_id})
    await db.module_progress.delete_many({"course_id": course_id})

    result = await db.courses.delete_one({"course_id": course_id})
    return result.deleted_count > 0

# ==================== MODULES ====================

async def list_modules(db: AsyncIOMotorDatabase, course_id: str) -> List[dict]:
    cursor = db.course_modules.find({"course_id": course_id}).sort("order", 1)
    return serialize_many(await cursor.to_list(length=None))


async def create_module(db: AsyncIOMotorDatabase, course_id: str, module_data: dict) -> dict:
    now = datetime.utcnow()
    module = {
        "module_id": generate_id("MOD"),
        "course_id": course_id,
        **module_data,
        "created_at": now,
        "updated_at": now,
    }
    await db.course_modules.insert_one(module)
    await db.courses.update_one(
        {"course_id": course_id},
        {"$addToSet": {"modules": module["module_id"]}, "$set": {"updated_at": now}}
    )
    return serialize_mongo(module)


async def update_module(db: AsyncIOMotorDatabase, course_id: str, module_id: str, updates: dict) -> Optional[dict]:
    updates["updated_at"] = datetime.utcnow()
    result = await db.course_modules.update_one(
        {"course_id": course_id, "module_id": module_id},
        {"$set": updates}
    )
    if result.matched_count == 0:
        return None
    return serialize_mongo(await db.course_modules.find_one({"module_id": module_id}))


async def delete_module(db: AsyncIOMotorDatabase, course_id: str, module_id: str) -> bool:
    result = await db.course_modules.delete_one({"course_id": course_id, "module_id": module_id})
    if result.deleted_count == 0:
        return False

    await db.module_progress.delete_many({"module_id": module_id})
    await db.courses.update_one({"course_id": course_id}, {"$pull": {"modules": module_id}})
    await db.course_enrollments.update_many(
        {"course_id": course_id},
        {"$pull": {"completed_modules": module_id}}
    )
    return True

# ==================== ENROLLMENT ====================

async def enroll_user(db: AsyncIOMotorDatabase, course_id: str, user_id: str) -> tuple[dict, bool]:
    """
    Enroll user in course; enrolling twice returns the existing enrollment

    Returns:
        (enrollment, created)
    """
    existing = await get_enrollment(db, course_id, user_id)
    if existing:
        return existing, False

    now = datetime.utcnow()
    enrollment = {
        "enrollment_id": generate_id("ENR"),
        "course_id": course_id,
        "user_id": user_id,
        "completed_modules": [],
        "progress": 0.0,
        "enrolled_at": now,
        "last_accessed_at": now,
    }

    try:
        await db.course_enrollments.insert_one(enrollment)
    except DuplicateKeyError:
        # Lost a race with a concurrent enroll for the same user/course
        return await get_enrollment(db, course_id, user_id), False

    await db.courses.update_one(
        {"course_id": course_id},
        {"$inc": {"enrollment_count": 1}}
    )
    return serialize_mongo(enrollment), True


async def get_enrollment(db: AsyncIOMotorDatabase, course_id: str, user_id: str) -> Optional[dict]:
    return serialize_mongo(await db.course_enrollments.find_one({
        "course_id": course_id,
        "user_id": user_id
    }))


async def list_course_enrollments(db: AsyncIOMotorDatabase, course_id: str) -> List[dict]:
    cursor = db.course_enrollments.find({"course_id": course_id}).sort("enrolled_at", -1)
    return serialize_many(await cursor.to_list(length=None))


async def list_user_enrollments(db: AsyncIOMotorDatabase, user_id: str) -> List[dict]:
    cursor = db.course_enrollments.find({"user_id": user_id}).sort("enrolled_at", -1)
    return serialize_many(await cursor.to_list(length=None))

# ==================== PROGRESS ====================

def calculate_progress(completed: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return min(100.0, max(0.0, round(completed / total * 100, 2)))


async def get_module_progress(db: AsyncIOMotorDatabase, course_id: str, user_id: str) -> List[dict]:
    cursor = db.module_progress.find({"course_id": course_id, "user_id": user_id}, {"_id": 0})
    return await cursor.to_list(length=None)


async def complete_module(
    db: AsyncIOMotorDatabase,
    course_id: str,
    module_id: str,
    user_id: str,
    time_spent: int = 0,
    notes: Optional[str] = None,
) -> dict:
    """
    Mark a module complete and recompute the enrollment's progress

    Returns:
        dict: {"module_id", "progress"}; progress is None when the user is not enrolled
    """
    now = datetime.utcnow()
    updates = {
        "course_id": course_id,
        "is_completed": True,
        "completed_at": now,
        "updated_at": now,
    }
    if notes is not None:
        updates["notes"] = notes

    await db.module_progress.update_one(
        {"module_id": module_id, "user_id": user_id},
        {
            "$set": updates,
            "$inc": {"time_spent": time_spent},
            "$setOnInsert": {"bookmarked": False},
        },
        upsert=True
    )

    enrollment = await get_enrollment(db, course_id, user_id)
    if not enrollment:
        return {"module_id": module_id, "progress": None}

    total_modules = await db.course_modules.count_documents({"course_id": course_id})
    completed_modules = await db.module_progress.count_documents({
        "course_id": course_id,
        "user_id": user_id,
        "is_completed": True
    })
    progress = calculate_progress(completed_modules, total_modules)

    await db.course_enrollments.update_one(
        {"course_id": course_id, "user_id": user_id},
        {
            "$set": {"progress": progress, "last_accessed_at": now},
            "$addToSet": {"completed_modules": module_id},
        }
    )
    return {"module_id": module_id, "progress": progress}


async def toggle_bookmark(db: AsyncIOMotorDatabase, course_id: str, module_id: str, user_id: str) -> bool:
    """Flip the bookmark flag, returns the new value"""
    existing = await db.module_progress.find_one({"module_id": module_id, "user_id": user_id})

    if existing:
        bookmarked = not existing.get("bookmarked", False)
        await db.module_progress.update_one(
            {"module_id": module_id, "user_id": user_id},
            {"$set": {"bookmarked": bookmarked, "updated_at": datetime.utcnow()}}
        )
        return bookmarked

    await db.module_progress.insert_one({
        "module_id": module_id,
        "user_id": user_id,
        "course_id": course_id,
        "is_completed": False,
        "time_spent": 0,
        "bookmarked": True,
        "updated_at": datetime.utcnow(),
    })
    return True
