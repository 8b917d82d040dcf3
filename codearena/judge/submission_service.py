import logging
from datetime import datetime
from typing import List, Optional

from fastapi import HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase

from codearena import config
from codearena.database import generate_id, serialize_many, serialize_mongo
from codearena.judge import evaluation

logger = logging.getLogger(__name__)


async def get_problem_or_404(db: AsyncIOMotorDatabase, problem_id: str, include_private: bool = False) -> dict:
    """Private problems only resolve for admins"""
    problem = await db.problems.find_one({"problem_id": problem_id})
    if not problem or (not problem.get("is_public", True) and not include_private):
        raise HTTPException(status_code=404, detail="Problem not found")
    return problem


def visible_test_cases(problem: dict) -> List[dict]:
    """Visible test cases, falling back to the problem's examples"""
    cases = [tc for tc in problem.get("test_cases", []) if not tc.get("is_hidden", False)]
    if cases:
        return cases
    return [
        {"input": ex.get("input"), "expected_output": ex.get("output"), "is_hidden": False}
        for ex in problem.get("examples", [])
    ]

# ==================== RUN (NOT PERSISTED) ====================

async def run_code(
    db: AsyncIOMotorDatabase,
    problem_id: str,
    code: str,
    language: str,
    include_private: bool = False,
) -> dict:
    problem = await get_problem_or_404(db, problem_id, include_private)

    cases = visible_test_cases(problem)
    if not cases:
        raise HTTPException(status_code=400, detail="No sample test cases available for this problem")

    result = evaluation.evaluate_test_cases(code, language, cases)
    result["problem_id"] = problem_id
    return result

# ==================== SUBMIT ====================

async def create_submission(
    db: AsyncIOMotorDatabase,
    user_id: str,
    problem_id: str,
    code: str,
    language: str,
    include_private: bool = False,
) -> dict:
    """
    Persist a submission, evaluate it against every test case and record the outcome

    Returns:
        dict: Final submission document plus per-case test_results

    Raises:
        404: Unknown problem, or private and include_private is False
        400: Problem has no test cases
    """
    problem = await get_problem_or_404(db, problem_id, include_private)

    test_cases = problem.get("test_cases") or []
    if not test_cases:
        raise HTTPException(status_code=400, detail="No test cases available for this problem")

    now = datetime.utcnow()
    submission = {
        "submission_id": generate_id("SUB"),
        "problem_id": problem_id,
        "user_id": user_id,
        "code": code,
        "language": language,
        "status": "pending",
        "runtime": None,
        "memory": None,
        "score": 0.0,
        "passed_count": 0,
        "total_test_cases": len(test_cases),
        "feedback": None,
        "submitted_at": now,
        "evaluated_at": None,
    }
    await db.submissions.insert_one(submission)

    result = evaluation.evaluate_test_cases(code, language, test_cases)

    final_fields = {
        "status": result["status"],
        "runtime": result["runtime"],
        "memory": result["memory"],
        "score": result["score"],
        "passed_count": result["passed_count"],
        "total_test_cases": result["total_test_cases"],
        "feedback": result["feedback"],
        "evaluated_at": datetime.utcnow(),
    }
    await db.submissions.update_one(
        {"submission_id": submission["submission_id"]},
        {"$set": final_fields}
    )
    submission.update(final_fields)

    await record_progress(db, user_id, problem, result["status"], result["score"])

    logger.info(
        "Submission %s by %s on %s: %s (%s/%s)",
        submission["submission_id"], user_id, problem_id,
        result["status"], result["passed_count"], result["total_test_cases"],
    )

    submission["test_results"] = result["test_results"]
    return serialize_mongo(submission)


async def record_progress(db: AsyncIOMotorDatabase, user_id: str, problem: dict, status: str, score: float):
    """
    Upsert the user's progress on a problem and award points on the first solve
    """
    now = datetime.utcnow()
    problem_id = problem["problem_id"]

    progress = await db.user_progress.find_one({"user_id": user_id, "problem_id": problem_id})
    already_solved = bool(progress and progress.get("status") == "solved")
    solved = status == "accepted"

    updates = {
        "last_attempt": now,
        "updated_at": now,
        "best_score": max(score, (progress or {}).get("best_score", 0)),
        "status": "solved" if (solved or already_solved) else "in_progress",
    }
    if solved and not already_solved:
        updates["solved_at"] = now

    await db.user_progress.update_one(
        {"user_id": user_id, "problem_id": problem_id},
        {
            "$set": updates,
            "$inc": {"attempts": 1},
            "$setOnInsert": {"created_at": now},
        },
        upsert=True
    )

    if solved and not already_solved:
        points = config.DIFFICULTY_POINTS.get(problem.get("difficulty"), 0)
        await db.users.update_one(
            {"user_id": user_id},
            {"$inc": {"stats.problems_solved": 1, "stats.points": points}}
        )

# ==================== READS ====================

async def list_user_submissions(db: AsyncIOMotorDatabase, user_id: str, problem_id: Optional[str] = None) -> List[dict]:
    query = {"user_id": user_id}
    if problem_id:
        query["problem_id"] = problem_id

    cursor = db.submissions.find(query).sort("submitted_at", -1)
    return serialize_many(await cursor.to_list(length=None))


async def get_submission(db: AsyncIOMotorDatabase, submission_id: str) -> Optional[dict]:
    return serialize_mongo(await db.submissions.find_one({"submission_id": submission_id}))
