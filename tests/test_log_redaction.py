"""Failed builds must never write the GitHub token into the logs."""

import pytest
from loguru import logger

from remote_build.db.jobs import create_build_job, get_build_job
from remote_build.services.build import runner as runner_module
from remote_build.services.build.orchestrator import upload_and_build_from_template
from remote_build.services.build.runner import run_build_job

from conftest import TOKEN, no_sleep


@pytest.fixture
def captured_logs():
    messages = []
    sink_id = logger.add(lambda m: messages.append(str(m)), level="DEBUG", backtrace=True, diagnose=True)
    try:
        yield messages
    finally:
        logger.remove(sink_id)


class TestTokenNeverLogged:
    @pytest.mark.asyncio
    async def test_failed_upload_job(self, monkeypatch, upload_request, github_client, fake_github, captured_logs):
        original = runner_module.upload_and_build_from_template

        async def _fast(request, progress_callback=None, client=None):
            return await original(request, progress_callback=progress_callback, client=client, sleep=no_sleep)

        monkeypatch.setattr(runner_module, "upload_and_build_from_template", _fast)
        fake_github.upload_status = 413
        job = await create_build_job(upload_request.file_name, upload_request.account_name)

        await run_build_job(job["_id"], upload_request, client=github_client)

        stored = await get_build_job(job["_id"])
        assert stored["status"] == "failed"
        assert any("failed" in m for m in captured_logs)
        assert not [m for m in captured_logs if TOKEN in m]
        assert TOKEN not in str(stored)

    @pytest.mark.asyncio
    async def test_soft_stage_failures(self, upload_request, github_client, fake_github, captured_logs):
        fake_github.workflow_put_status = 403
        fake_github.delete_status = 403
        request = upload_request.model_copy(update={"auto_delete": True})

        await upload_and_build_from_template(request, client=github_client, sleep=no_sleep)

        assert any("adding workflow" in m for m in captured_logs)
        assert any("deleting temp repo" in m for m in captured_logs)
        assert not [m for m in captured_logs if TOKEN in m]

    @pytest.mark.asyncio
    async def test_unreachable_github_on_delete(self, upload_request, github_client, fake_github, captured_logs):
        fake_github.delete_raises = True
        request = upload_request.model_copy(update={"auto_delete": True})

        await upload_and_build_from_template(request, client=github_client, sleep=no_sleep)

        assert any("deleting temp repo" in m for m in captured_logs)
        assert not [m for m in captured_logs if TOKEN in m]
