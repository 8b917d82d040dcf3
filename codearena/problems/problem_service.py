from datetime import datetime
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from codearena.database import generate_id, serialize_many, serialize_mongo

# ==================== PROBLEM CRUD ====================

async def create_problem(db: AsyncIOMotorDatabase, problem_data: dict, creator_id: str) -> dict:
    now = datetime.utcnow()
    problem = {
        "problem_id": generate_id("PRB"),
        **problem_data,
        "created_by": creator_id,
        "created_at": now,
        "updated_at": now,
    }
    await db.problems.insert_one(problem)
    return serialize_mongo(problem)


async def get_problem(db: AsyncIOMotorDatabase, problem_id: str) -> Optional[dict]:
    return serialize_mongo(await db.problems.find_one({"problem_id": problem_id}))


async def list_problems(
    db: AsyncIOMotorDatabase,
    difficulty: Optional[str] = None,
    tag: Optional[str] = None,
    include_private: bool = False,
) -> List[dict]:
    query = {}
    if not include_private:
        query["is_public"] = {"$ne": False}
    if difficulty:
        query["difficulty"] = difficulty
    if tag:
        query["tags"] = tag

    cursor = db.problems.find(query).sort("created_at", -1)
    return serialize_many(await cursor.to_list(length=None))


async def replace_problem(db: AsyncIOMotorDatabase, problem_id: str, problem_data: dict, editor_id: str) -> Optional[dict]:
    """Full update; the payload has already been validated as a complete problem"""
    result = await db.problems.update_one(
        {"problem_id": problem_id},
        {"$set": {
            **problem_data,
            "updated_by": editor_id,
            "updated_at": datetime.utcnow(),
        }}
    )
    if result.matched_count == 0:
        return None
    return await get_problem(db, problem_id)


async def delete_problem(db: AsyncIOMotorDatabase, problem_id: str) -> bool:
    result = await db.problems.delete_one({"problem_id": problem_id})
    return result.deleted_count > 0

# ==================== VISIBILITY ====================

def strip_hidden_test_cases(problem: dict) -> dict:
    """Remove hidden test cases and the reference solution for non-admin viewers"""
    visible = dict(problem)
    visible["test_cases"] = [
        tc for tc in problem.get("test_cases", []) if not tc.get("is_hidden", False)
    ]
    visible.pop("solution_code", None)
    return visible
