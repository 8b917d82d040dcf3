import logging
import uuid
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from codearena import config

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Manages MongoDB connection lifecycle"""

    def __init__(self):
        self.client: Optional[AsyncIOMotorClient] = None
        self.db: Optional[AsyncIOMotorDatabase] = None

    def connect(self):
        """Initialize MongoDB connection"""
        if not config.MONGO_URL:
            raise RuntimeError("MONGO_URL environment variable required")

        self.client = AsyncIOMotorClient(config.MONGO_URL)
        self.db = self.client[config.DATABASE_NAME]
        logger.info("MongoDB connected (database=%s)", config.DATABASE_NAME)

    def disconnect(self):
        """Close MongoDB connection"""
        if self.client:
            self.client.close()
            self.client = None
            self.db = None
            logger.info("MongoDB disconnected")

    def get_database(self) -> AsyncIOMotorDatabase:
        """Get database instance for dependency injection"""
        if self.db is None:
            self.connect()
        return self.db


# Global database manager
db_manager = DatabaseManager()


def get_db() -> AsyncIOMotorDatabase:
    """FastAPI dependency for database access"""
    return db_manager.get_database()


# ==================== HELPERS ====================

def generate_id(prefix: str) -> str:
    """Prefixed opaque identifier, e.g. PRB_9F2C41AB03DE"""
    return f"{prefix}_{uuid.uuid4().hex[:12].upper()}"


def serialize_mongo(doc: Optional[dict]) -> Optional[dict]:
    if doc is None:
        return None
    if "_id" in doc:
        doc["_id"] = str(doc["_id"])
    return doc


def serialize_many(docs: list[dict]) -> list[dict]:
    return [serialize_mongo(doc) for doc in docs]


# ==================== INDEXES ====================

async def create_indexes(db: AsyncIOMotorDatabase):
    """
    Create database indexes for query performance and uniqueness
    Called during application startup
    """
    # Users
    await db.users.create_index("user_id", unique=True)
    await db.users.create_index("email", unique=True)
    await db.users.create_index("google_id", sparse=True)

    # Problems
    await db.problems.create_index("problem_id", unique=True)
    await db.problems.create_index([("is_public", ASCENDING), ("difficulty", ASCENDING)])

    # Submissions
    await db.submissions.create_index("submission_id", unique=True)
    await db.submissions.create_index([("user_id", ASCENDING), ("submitted_at", DESCENDING)])
    await db.submissions.create_index([("problem_id", ASCENDING), ("user_id", ASCENDING)])
    await db.submissions.create_index("status")

    # Progress
    await db.user_progress.create_index(
        [("user_id", ASCENDING), ("problem_id", ASCENDING)], unique=True
    )
    await db.user_progress.create_index("status")

    # Contests
    await db.contests.create_index("contest_id", unique=True)
    await db.contests.create_index("start_time")
    await db.contest_participants.create_index(
        [("contest_id", ASCENDING), ("user_id", ASCENDING)], unique=True
    )

    # Courses
    await db.courses.create_index("course_id", unique=True)
    await db.courses.create_index("category")
    await db.course_modules.create_index("module_id", unique=True)
    await db.course_modules.create_index([("course_id", ASCENDING), ("order", ASCENDING)])
    await db.course_enrollments.create_index(
        [("course_id", ASCENDING), ("user_id", ASCENDING)], unique=True
    )
    await db.course_enrollments.create_index("user_id")
    await db.module_progress.create_index(
        [("module_id", ASCENDING), ("user_id", ASCENDING)], unique=True
    )

    # Assignments
    await db.assignments.create_index("assignment_id", unique=True)
    await db.assignments.create_index("course_tag")
    await db.assignment_submissions.create_index("submission_id", unique=True)
    await db.assignment_submissions.create_index(
        [("assignment_id", ASCENDING), ("user_id", ASCENDING), ("attempt_number", ASCENDING)]
    )

    # Community
    await db.groups.create_index("group_id", unique=True)
    await db.groups.create_index("members")
    await db.groups.create_index("instructors")
    await db.announcements.create_index("announcement_id", unique=True)
    await db.announcements.create_index("created_at")

    # Audit logs
    await db.audit_logs.create_index("actor_user_id")
    await db.audit_logs.create_index([("target_type", ASCENDING), ("target_id", ASCENDING)])
    await db.audit_logs.create_index("timestamp")

    logger.info("Database indexes created")
