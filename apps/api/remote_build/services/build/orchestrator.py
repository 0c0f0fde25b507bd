from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx
from loguru import logger

from remote_build.schemas.build import (
    EphemeralRepository,
    OrchestrationResult,
    ReleaseAsset,
    UploadRequest,
)
from remote_build.services.build.encoding import encode_content
from remote_build.services.build.errors import (
    BuildPreconditionError,
    GitHubAPIError,
    ReleaseAssetNotFoundError,
)
from remote_build.services.build.naming import generate_repo_name
from remote_build.services.build.poller import RunPoller, Sleep
from remote_build.services.build.progress import ProgressCallback, emit
from remote_build.services.build.workflow import (
    WORKFLOW_COMMIT_MESSAGE,
    render_workflow,
    workflow_path,
)
from remote_build.services.github.client import GitHubClient


def validate_request(request: UploadRequest) -> None:
    if not request.account_name or not request.credential.get_secret_value():
        raise BuildPreconditionError("Missing GitHub username or token")
    if not request.content or not request.file_name:
        raise BuildPreconditionError("Missing bundle content or filename")


class BuildOrchestrator:
    """
    Drives one remote build:
    - classify the account
    - generate a temp repo from the template
    - install the CI workflow (best effort)
    - upload the bundle
    - dispatch and poll the run
    - resolve the release asset
    - optionally delete the temp repo
    """

    def __init__(
        self,
        request: UploadRequest,
        client: Optional[GitHubClient] = None,
        progress: Optional[ProgressCallback] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        validate_request(request)
        self.request = request
        self.client = client or GitHubClient(token=request.credential.get_secret_value())
        self.progress_callback = progress
        self.sleep = sleep
        self.repository: Optional[EphemeralRepository] = None

    async def _progress(self, msg: str) -> None:
        await emit(self.progress_callback, msg)

    async def classify_account(self) -> bool:
        await self._progress("Checking account type...")
        account = await self.client.get_account(self.request.account_name)
        return account.get("type") == "Organization"

    async def provision_repository(self, is_org: bool) -> EphemeralRepository:
        req = self.request
        name = generate_repo_name(req.repo_name_prefix)
        await self._progress(f"Generating repository from template{' (organization)' if is_org else ''}...")

        data = await self.client.generate_from_template(
            template_owner=req.template_owner,
            template_repo=req.template_repo,
            owner=req.account_name,
            name=name,
        )
        repo = EphemeralRepository(
            name=name,
            owner=req.account_name,
            html_url=data.get("html_url") or f"https://github.com/{req.account_name}/{name}",
            is_organization=is_org,
        )
        logger.info("generated {}/{} from {}/{}", repo.owner, repo.name, req.template_owner, req.template_repo)
        await self._progress(f"Repository generated from template: {repo.html_url}")
        return repo

    async def install_workflow(self, repo: EphemeralRepository) -> bool:
        await self._progress("Adding build workflow...")
        try:
            await self.client.put_file_contents(
                repo.owner,
                repo.name,
                workflow_path(self.request.workflow_file),
                encode_content(render_workflow().encode("utf-8")),
                WORKFLOW_COMMIT_MESSAGE,
            )
        except (GitHubAPIError, httpx.HTTPError) as e:
            logger.warning("adding workflow to {}/{} failed: {}", repo.owner, repo.name, e)
            return False
        await self._progress("Build workflow added")
        return True

    async def upload_bundle(self, repo: EphemeralRepository) -> None:
        req = self.request
        await self._progress(f"Uploading {req.file_name} to {repo.owner}/{repo.name} ...")
        await self.client.put_file_contents(
            repo.owner,
            repo.name,
            quote(req.file_name, safe=""),
            encode_content(req.content),
            f"Upload {req.file_name} via packager",
        )
        await self._progress("Bundle upload complete")

    async def trigger_build(self, repo: EphemeralRepository) -> None:
        await self.client.dispatch_workflow(repo.owner, repo.name, self.request.workflow_file, self.request.dispatch_ref)
        await self._progress("Workflow dispatched, polling run status...")

    async def wait_for_run(self, repo: EphemeralRepository):
        req = self.request
        poller = RunPoller(
            self.client,
            repo.owner,
            repo.name,
            interval_ms=req.poll_interval_ms,
            max_attempts=req.poll_max_attempts,
            initial_delay_ms=req.initial_poll_delay_ms,
            progress=self._progress,
            sleep=self.sleep,
        )
        return await poller.wait()

    async def resolve_release(self, repo: EphemeralRepository) -> tuple[Dict[str, Any], ReleaseAsset]:
        await self._progress("Workflow succeeded, fetching release assets...")
        release = await self.client.get_latest_release(repo.owner, repo.name)
        assets = release.get("assets") or []
        if not assets:
            raise ReleaseAssetNotFoundError(f"No release assets found for {repo.owner}/{repo.name}")
        # first asset wins, see DESIGN.md
        first = assets[0]
        asset = ReleaseAsset(name=first.get("name", ""), download_url=first.get("browser_download_url", ""))
        await self._progress(f"Found release asset: {asset.name}")
        return release, asset

    async def cleanup(self, repo: EphemeralRepository) -> bool:
        try:
            await self.client.delete_repo(repo.owner, repo.name)
        except (GitHubAPIError, httpx.HTTPError) as e:
            logger.warning("deleting temp repo {}/{} failed: {}", repo.owner, repo.name, e)
            await self._progress(f"Warning: could not delete temporary repository, please delete it manually: {repo.html_url}")
            return False
        await self._progress("Temporary repository deleted")
        return True

    async def run(self) -> OrchestrationResult:
        is_org = await self.classify_account()
        repo = await self.provision_repository(is_org)
        self.repository = repo

        await self.install_workflow(repo)
        await self.upload_bundle(repo)
        await self.trigger_build(repo)
        await self.wait_for_run(repo)
        release, asset = await self.resolve_release(repo)

        if self.request.auto_delete:
            await self.cleanup(repo)

        return OrchestrationResult(
            repository_url=repo.html_url,
            release_url=release.get("html_url") or f"{repo.html_url}/releases/latest",
            asset_name=asset.name,
            asset_download_url=asset.download_url,
        )


async def upload_and_build_from_template(
    request: UploadRequest,
    progress_callback: Optional[ProgressCallback] = None,
    client: Optional[GitHubClient] = None,
    sleep: Sleep = asyncio.sleep,
) -> OrchestrationResult:
    orchestrator = BuildOrchestrator(request, client=client, progress=progress_callback, sleep=sleep)
    return await orchestrator.run()
