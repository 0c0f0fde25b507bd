import base64
import binascii

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import APIRouter, BackgroundTasks, HTTPException
from pydantic import SecretStr

from remote_build.core.config import settings
from remote_build.db.jobs import create_build_job, get_build_job
from remote_build.schemas.build import BuildJobDetail, BuildJobOut, BuildRequest, UploadRequest
from remote_build.services.build.errors import BuildPreconditionError
from remote_build.services.build.orchestrator import validate_request
from remote_build.services.build.runner import run_build_job

router = APIRouter(tags=["builds"])

def _upload_request(payload: BuildRequest, content: bytes) -> UploadRequest:
    return UploadRequest(
        content=content,
        file_name=payload.file_name,
        account_name=payload.account_name or settings.GITHUB_USER or "",
        credential=SecretStr(settings.GITHUB_TOKEN or ""),
        template_owner=payload.template_owner or settings.TEMPLATE_OWNER,
        template_repo=payload.template_repo or settings.TEMPLATE_REPO,
        workflow_file=payload.workflow_file or settings.WORKFLOW_FILE,
        dispatch_ref=settings.DISPATCH_REF,
        repo_name_prefix=settings.REPO_NAME_PREFIX,
        auto_delete=settings.AUTO_DELETE if payload.auto_delete is None else payload.auto_delete,
        poll_interval_ms=settings.POLL_INTERVAL_MS,
        poll_max_attempts=settings.POLL_MAX_ATTEMPTS,
        initial_poll_delay_ms=settings.INITIAL_POLL_DELAY_MS,
    )

@router.post("/builds", response_model=BuildJobOut, status_code=202)
async def start_build(payload: BuildRequest, background_tasks: BackgroundTasks):
    try:
        content = base64.b64decode(payload.content_base64, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail="content_base64 is not valid base64")

    request = _upload_request(payload, content)
    try:
        validate_request(request)
    except BuildPreconditionError as e:
        raise HTTPException(status_code=400, detail=str(e))

    job = await create_build_job(file_name=request.file_name, account_name=request.account_name)
    background_tasks.add_task(run_build_job, job["_id"], request)

    return BuildJobOut(job_id=str(job["_id"]), status=job["status"])

@router.get("/builds/{job_id}", response_model=BuildJobDetail)
async def get_build(job_id: str):
    try:
        oid = ObjectId(job_id)
    except (InvalidId, TypeError):
        raise HTTPException(status_code=400, detail="Invalid job_id")

    job = await get_build_job(oid)
    if not job:
        raise HTTPException(status_code=404, detail="Build job not found")

    job["_id"] = str(job["_id"])
    return BuildJobDetail(job_id=job.pop("_id"), **job)
