from __future__ import annotations

from typing import Optional


class BuildError(Exception):
    """Base class for everything that aborts a remote build."""


class BuildPreconditionError(BuildError):
    """Raised before any network call when required inputs are missing."""


class GitHubAPIError(BuildError):
    def __init__(self, message: str, status_code: Optional[int] = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class WorkflowRunFailedError(BuildError):
    def __init__(self, conclusion: str) -> None:
        super().__init__(f"Workflow finished with conclusion: {conclusion}")
        self.conclusion = conclusion


class WorkflowTimeoutError(BuildError):
    def __init__(self, attempts: int) -> None:
        super().__init__(f"Workflow did not complete successfully in time ({attempts} attempts)")
        self.attempts = attempts


class ReleaseAssetNotFoundError(BuildError):
    pass
