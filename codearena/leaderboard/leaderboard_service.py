from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

MAX_STREAK_DAYS = 30

# ==================== LEADERBOARD QUERIES ====================

async def get_leaderboard(db: AsyncIOMotorDatabase, limit: int = 10) -> List[dict]:
    """
    Users ranked by solved problems, then by the sum of their best scores
    """
    pipeline = [
        {"$match": {"status": "solved"}},
        {
            "$group": {
                "_id": "$user_id",
                "problems_solved": {"$sum": 1},
                "total_score": {"$sum": "$best_score"},
            }
        },
        {"$sort": {"problems_solved": -1, "total_score": -1}},
        {"$limit": limit},
        {
            "$lookup": {
                "from": "users",
                "localField": "_id",
                "foreignField": "user_id",
                "as": "user"
            }
        },
        {"$unwind": "$user"},
        {
            "$project": {
                "_id": 0,
                "user_id": "$_id",
                "first_name": "$user.first_name",
                "last_name": "$user.last_name",
                "profile_image_url": "$user.profile_image_url",
                "problems_solved": 1,
                "total_score": 1,
            }
        },
    ]

    rows = await db.user_progress.aggregate(pipeline).to_list(length=limit)

    return [
        {
            "rank": idx + 1,
            "user": {
                "user_id": row["user_id"],
                "first_name": row.get("first_name"),
                "last_name": row.get("last_name"),
                "profile_image_url": row.get("profile_image_url"),
            },
            "problems_solved": row["problems_solved"],
            "total_score": round(row["total_score"], 2),
        }
        for idx, row in enumerate(rows)
    ]

# ==================== USER STATS ====================

def calculate_streak(activity_days: Iterable[date], today: Optional[date] = None) -> int:
    """
    Consecutive days with at least one submission, counting back from today
    No activity yet today does not break the streak
    """
    days = set(activity_days)
    today = today or datetime.utcnow().date()

    current = today if today in days else today - timedelta(days=1)
    streak = 0
    while current in days and streak < MAX_STREAK_DAYS:
        streak += 1
        current -= timedelta(days=1)
    return streak


async def get_user_stats(db: AsyncIOMotorDatabase, user: dict) -> dict:
    user_id = user["user_id"]

    total = await db.submissions.count_documents({"user_id": user_id})
    accepted = await db.submissions.count_documents({"user_id": user_id, "status": "accepted"})

    since = datetime.utcnow() - timedelta(days=MAX_STREAK_DAYS + 1)
    recent = await db.submissions.find(
        {"user_id": user_id, "submitted_at": {"$gte": since}},
        {"submitted_at": 1}
    ).to_list(length=None)

    stats = user.get("stats", {})
    return {
        "total": total,
        "accepted": accepted,
        "streak": calculate_streak(s["submitted_at"].date() for s in recent),
        "problems_solved": stats.get("problems_solved", 0),
        "points": stats.get("points", 0),
    }


async def get_user_progress(db: AsyncIOMotorDatabase, user_id: str) -> List[dict]:
    cursor = db.user_progress.find({"user_id": user_id}, {"_id": 0}).sort("last_attempt", -1)
    return await cursor.to_list(length=None)
