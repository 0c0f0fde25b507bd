from fastapi import FastAPI
from remote_build.core.config import settings
from remote_build.core.logging import setup_logging
from remote_build.db.jobs import ensure_indexes
from remote_build.db.mongo import close_client

from remote_build.api.v1.health import router as health_router
from remote_build.api.v1.builds import router as builds_router
from remote_build.api.v1.extensions import router as extensions_router

logger = setup_logging()

def create_app() -> FastAPI:
    app = FastAPI(title=settings.APP_NAME)

    @app.on_event("startup")
    async def _startup():
        await ensure_indexes()
        logger.info("Indexes ensured")

    @app.on_event("shutdown")
    async def _shutdown():
        close_client()

    app.include_router(health_router, prefix="/api/v1")
    app.include_router(builds_router, prefix="/api/v1")
    app.include_router(extensions_router, prefix="/api/v1")

    return app

app = create_app()
