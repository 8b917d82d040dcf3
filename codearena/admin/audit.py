from datetime import datetime
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from codearena.auth.permissions import UserContext


async def log_audit(
    db: AsyncIOMotorDatabase,
    actor: UserContext,
    action: str,
    target_type: str,
    target_id: str,
    metadata: dict = None
):
    """
    Log destructive or important admin actions for auditability

    Args:
        actor: UserContext of the admin performing the action
        action: Action performed (e.g., 'create_problem', 'delete_course')
        target_type: Resource type (e.g., 'problem', 'course', 'user')
        target_id: ID of the resource
        metadata: Additional context (optional)
    """
    await db.audit_logs.insert_one({
        "actor_user_id": actor.user_id,
        "actor_email": actor.email,
        "role": actor.role,
        "action": action,
        "target_type": target_type,
        "target_id": target_id,
        "metadata": metadata or {},
        "timestamp": datetime.utcnow(),
    })


async def get_audit_trail(
    db: AsyncIOMotorDatabase,
    target_type: Optional[str] = None,
    target_id: Optional[str] = None,
    limit: int = 100
):
    """
    Retrieve audit logs with optional filters, newest first
    """
    query = {}

    if target_type:
        query["target_type"] = target_type

    if target_id:
        query["target_id"] = target_id

    cursor = db.audit_logs.find(query).sort("timestamp", -1).limit(limit)
    logs = await cursor.to_list(length=limit)

    for log in logs:
        log.pop("_id", None)

    return logs
