from __future__ import annotations

import asyncio
from enum import Enum
from typing import Awaitable, Callable, Optional

import httpx
from loguru import logger

from remote_build.schemas.build import WorkflowRun
from remote_build.services.build.errors import GitHubAPIError, WorkflowRunFailedError, WorkflowTimeoutError
from remote_build.services.build.progress import ProgressCallback, emit
from remote_build.services.github.client import GitHubClient

FAILED_CONCLUSIONS = {"failure", "cancelled", "timed_out"}

Sleep = Callable[[float], Awaitable[None]]


class RunState(str, Enum):
    SEARCHING = "searching"
    POLLING = "polling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class RunPoller:
    """
    Waits for the most recent workflow run of a repo to finish.

    A dispatch does not hand back a run id, so each attempt looks up the newest
    run first and then reads its detail. Lookup failures only burn an attempt;
    a failing conclusion or an exhausted budget ends the build.
    """

    def __init__(
        self,
        client: GitHubClient,
        owner: str,
        repo: str,
        *,
        interval_ms: int,
        max_attempts: int,
        initial_delay_ms: int = 2_000,
        progress: Optional[ProgressCallback] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.client = client
        self.owner = owner
        self.repo = repo
        self.interval_ms = interval_ms
        self.max_attempts = max_attempts
        self.initial_delay_ms = initial_delay_ms
        self.progress = progress
        self.sleep = sleep

        self.state = RunState.SEARCHING
        self.attempts = 0
        self.run_id: Optional[int] = None
        self.last_run: Optional[WorkflowRun] = None

    def _delay_seconds(self) -> float:
        ms = self.initial_delay_ms if self.attempts == 1 else self.interval_ms
        return ms / 1000.0

    async def _latest_run_id(self) -> Optional[int]:
        try:
            runs = await self.client.list_runs(self.owner, self.repo, per_page=1)
        except (GitHubAPIError, httpx.HTTPError, ValueError) as e:
            logger.debug("runs lookup failed on attempt {}: {}", self.attempts, e)
            return None
        items = runs.get("workflow_runs") or []
        if not items:
            return None
        return items[0].get("id")

    async def _run_detail(self, run_id: int) -> Optional[WorkflowRun]:
        try:
            data = await self.client.get_run(self.owner, self.repo, run_id)
            return WorkflowRun(
                id=data.get("id", run_id),
                status=data.get("status"),
                conclusion=data.get("conclusion"),
                html_url=data.get("html_url"),
            )
        except (GitHubAPIError, httpx.HTTPError, ValueError) as e:
            # non-JSON bodies and malformed runs only burn the attempt
            logger.debug("run {} detail failed on attempt {}: {}", run_id, self.attempts, e)
            return None

    async def wait(self) -> WorkflowRun:
        while self.attempts < self.max_attempts:
            self.attempts += 1
            await self.sleep(self._delay_seconds())

            run_id = await self._latest_run_id()
            if run_id is None:
                continue
            self.run_id = run_id

            run = await self._run_detail(run_id)
            if run is None:
                continue
            self.state = RunState.POLLING
            self.last_run = run

            await emit(self.progress, f"Workflow status: {run.status} conclusion: {run.conclusion or 'pending'}")

            if run.conclusion == "success":
                self.state = RunState.SUCCEEDED
                logger.info("run {} succeeded after {} attempts", run.id, self.attempts)
                return run
            if run.conclusion in FAILED_CONCLUSIONS:
                self.state = RunState.FAILED
                logger.warning("run {} finished with conclusion {}", run.id, run.conclusion)
                raise WorkflowRunFailedError(run.conclusion)

        self.state = RunState.TIMED_OUT
        logger.warning("gave up on {}/{} after {} attempts", self.owner, self.repo, self.attempts)
        raise WorkflowTimeoutError(self.attempts)
