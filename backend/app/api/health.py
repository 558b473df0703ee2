"""
Health check endpoints
"""

import time

from fastapi import APIRouter, Depends
from pymongo.database import Database
from pymongo.errors import PyMongoError

from app.database.mongo import get_db
from app.dtos.common import format_response
from app.utils.datetime import utc_now

router = APIRouter()

_STARTED_AT = time.monotonic()


@router.get("/health")
def health_check(db: Database = Depends(get_db)):
    """API health check with a MongoDB ping."""
    try:
        db.command("ping")
        database = "connected"
    except PyMongoError:
        database = "disconnected"

    return format_response(
        data={
            "timestamp": utc_now().isoformat(),
            "uptime": round(time.monotonic() - _STARTED_AT, 3),
            "database": database,
        },
        message="Server is running",
    )
