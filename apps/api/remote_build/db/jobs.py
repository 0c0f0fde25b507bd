from datetime import datetime
from typing import Any, Dict, Optional

from bson import ObjectId

from remote_build.core.config import settings
from remote_build.db.mongo import get_db

BUILD_JOBS = "build_jobs"

async def ensure_indexes():
    db = get_db()
    await db[BUILD_JOBS].create_index("status")
    # finished or abandoned jobs age out on their own
    await db[BUILD_JOBS].create_index("created_at", expireAfterSeconds=settings.BUILD_JOB_TTL_HOURS * 3600)

async def create_build_job(file_name: str, account_name: str) -> Dict[str, Any]:
    db = get_db()
    now = datetime.utcnow()
    job = {
        "status": "queued",  # queued -> running -> done/failed
        "file_name": file_name,
        "account_name": account_name,
        "progress": [],
        "result": None,
        "error": None,
        "created_at": now,
        "updated_at": now,
    }
    result = await db[BUILD_JOBS].insert_one(job)
    job["_id"] = result.inserted_id
    return job

async def get_build_job(job_id: ObjectId) -> Optional[Dict[str, Any]]:
    db = get_db()
    return await db[BUILD_JOBS].find_one({"_id": job_id})

async def set_build_job(job_id: ObjectId, status: str, error: Optional[str] = None, extra: Optional[Dict[str, Any]] = None) -> None:
    db = get_db()
    update: Dict[str, Any] = {"status": status, "updated_at": datetime.utcnow(), "error": error}
    if extra:
        update.update(extra)
    await db[BUILD_JOBS].update_one({"_id": job_id}, {"$set": update})

async def push_build_progress(job_id: ObjectId, message: str) -> None:
    db = get_db()
    await db[BUILD_JOBS].update_one(
        {"_id": job_id},
        {"$push": {"progress": message}, "$set": {"updated_at": datetime.utcnow()}},
    )
