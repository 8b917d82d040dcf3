import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from codearena import config
from codearena.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["System"])


@router.get("/health")
async def health(db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        await db.command("ping")
        database_status = "UP"
    except Exception as e:
        logger.warning("Database ping failed: %s", e)
        database_status = "DOWN"

    return {
        "status": "ok",
        "version": config.VERSION,
        "database": database_status,
        "timestamp": datetime.utcnow(),
    }
