# app/routes/health.py
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import func
import psutil
import datetime
import sys
import logging

from app.database import Database
from app.models import BlobFile, Document, Personnel, Policy, RIDS, Training, TrainingRegistration, User
from app.utils.exceptions import DatabaseUnavailableError

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/api",
    tags=["Health Check"]
)

COUNTED_TABLES = {
    "users": User,
    "personnels": Personnel,
    "documents": Document,
    "trainings": Training,
    "training_registrations": TrainingRegistration,
    "policies": Policy,
    "rids": RIDS,
    "fs_files": BlobFile,
}

NO_CACHE = {"Cache-Control": "no-cache, no-store, must-revalidate"}


def _process_info() -> dict:
    process = psutil.Process()
    return {
        "pid": process.pid,
        "create_time": datetime.datetime.fromtimestamp(process.create_time()).isoformat(),
        "memory_rss_mb": round(process.memory_info().rss / (1024 * 1024), 2),
        "num_threads": process.num_threads(),
        "memory_percent": psutil.virtual_memory().percent,
        "python_version": sys.version.split()[0],
    }


@router.get("/db-status")
def db_status(request: Request):
    """
    Database connectivity and per-table row counts
    """
    database: Database = request.app.state.database
    status = {
        "timestamp": datetime.datetime.now().isoformat(),
        "process": _process_info(),
    }

    try:
        database.connect()
    except DatabaseUnavailableError:
        status["database"] = {"status": "disconnected"}
        logger.error("❌ db-status: database unreachable")
        return JSONResponse(
            status_code=503,
            content={"success": False, "error": "Database connection failed", "data": status},
            headers=NO_CACHE,
        )

    db = database.session()
    try:
        counts = {name: db.query(func.count(model.id)).scalar() for name, model in COUNTED_TABLES.items()}
    finally:
        db.close()

    status["database"] = {
        "status": "connected",
        "dialect": database.engine.dialect.name,
        "using_fallback": database.using_fallback,
        "counts": counts,
    }
    logger.info(f"DB status check: {database.engine.dialect.name}, fallback={database.using_fallback}")
    return JSONResponse(content={"success": True, "data": status}, headers=NO_CACHE)


@router.get("/health/ping")
async def ping():
    """
    Simple ping endpoint for keep-alive
    """
    return JSONResponse(
        content={"status": "pong", "timestamp": datetime.datetime.now().isoformat()},
        headers={"Cache-Control": "no-cache", "X-Ping": "true"},
    )
