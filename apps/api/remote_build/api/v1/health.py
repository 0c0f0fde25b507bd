from fastapi import APIRouter

from remote_build.core.config import settings
from remote_build.db.mongo import get_db

async def mongo_ok() -> bool:
    try:
        db = get_db()
        await db.command("ping")
        return True
    except Exception:
        return False

router = APIRouter(tags=["health"])

@router.get("/health")
async def health():
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "mongo": await mongo_ok(),
        "github_token_configured": bool(settings.GITHUB_TOKEN),
    }
