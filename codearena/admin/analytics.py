from collections import Counter
from datetime import datetime

from motor.motor_asyncio import AsyncIOMotorDatabase

from codearena.contests.contest_service import derive_contest_status


async def get_platform_analytics(db: AsyncIOMotorDatabase) -> dict:
    """Headline counts and the most recent submissions"""
    now = datetime.utcnow()

    total_users = await db.users.count_documents({})
    total_problems = await db.problems.count_documents({})
    total_submissions = await db.submissions.count_documents({})

    contests = await db.contests.find({}, {"start_time": 1, "end_time": 1}).to_list(length=None)
    active_contests = sum(
        1 for c in contests
        if derive_contest_status(now, c["start_time"], c["end_time"]) == "active"
    )

    by_status = await db.submissions.aggregate([
        {"$group": {"_id": "$status", "count": {"$sum": 1}}}
    ]).to_list(length=None)

    recent = await db.submissions.find(
        {}, {"_id": 0, "code": 0}
    ).sort("submitted_at", -1).limit(10).to_list(length=10)

    return {
        "total_users": total_users,
        "total_problems": total_problems,
        "total_submissions": total_submissions,
        "active_contests": active_contests,
        "submissions_by_status": {row["_id"]: row["count"] for row in by_status},
        "recent_submissions": recent,
    }


async def get_course_stats(db: AsyncIOMotorDatabase) -> dict:
    courses = await db.courses.find({}, {"course_id": 1, "title": 1, "category": 1}).to_list(length=None)
    enrollments = await db.course_enrollments.find({}, {"progress": 1}).to_list(length=None)

    completion_rate = 0
    if enrollments:
        completion_rate = round(sum(e.get("progress") or 0 for e in enrollments) / len(enrollments))

    categories = Counter(c["category"] for c in courses if c.get("category"))
    popular_categories = [
        {"category": category, "count": count}
        for category, count in categories.most_common(5)
    ]

    titles = {c["course_id"]: c.get("title") for c in courses}
    recent_enrollments = await db.course_enrollments.find(
        {}, {"_id": 0, "course_id": 1, "user_id": 1, "enrolled_at": 1}
    ).sort("enrolled_at", -1).limit(10).to_list(length=10)

    recent_activity = [
        {
            "action": "User enrolled in course",
            "course": titles.get(e["course_id"], "Unknown Course"),
            "user_id": e["user_id"],
            "timestamp": e["enrolled_at"],
        }
        for e in recent_enrollments
    ]

    return {
        "total_courses": len(courses),
        "total_enrollments": len(enrollments),
        "completion_rate": completion_rate,
        "popular_categories": popular_categories,
        "recent_activity": recent_activity,
    }
