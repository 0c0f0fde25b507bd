from __future__ import annotations

from typing import Optional

from bson import ObjectId
from loguru import logger

from remote_build.db.jobs import get_build_job, push_build_progress, set_build_job
from remote_build.schemas.build import UploadRequest
from remote_build.services.build.errors import BuildError
from remote_build.services.build.orchestrator import upload_and_build_from_template
from remote_build.services.github.client import GitHubClient


async def run_build_job(job_id: ObjectId, request: UploadRequest, client: Optional[GitHubClient] = None) -> None:
    """
    Background job runner:
    - mark the job running
    - drive the orchestrator, streaming progress into the job
    - store the result or the error
    """
    job = await get_build_job(job_id)
    if not job:
        # nothing we can do; job was never created
        return

    await set_build_job(job_id, "running")

    try:
        result = await upload_and_build_from_template(
            request,
            progress_callback=lambda msg: push_build_progress(job_id, msg),
            client=client,
        )
    except BuildError as e:
        logger.warning("build job {} failed: {}", job_id, e)
        await set_build_job(job_id, "failed", error=str(e))
        return
    except Exception as e:
        logger.exception("build job {} crashed", job_id)
        await set_build_job(job_id, "failed", error=f"{type(e).__name__}: {e}")
        return

    await set_build_job(job_id, "done", extra={"result": result.model_dump()})
    logger.info("build job {} done: {}", job_id, result.asset_download_url)
