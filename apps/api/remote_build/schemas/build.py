from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr


class UploadRequest(BaseModel):
    """Everything one orchestration needs. Frozen once a build starts."""

    model_config = ConfigDict(frozen=True)

    content: bytes = b""
    file_name: str = ""
    account_name: str = ""
    credential: SecretStr = SecretStr("")
    template_owner: str = "Deep-sea-lab"
    template_repo: str = "02packager-template"
    workflow_file: str = "main.yml"
    dispatch_ref: str = "main"
    repo_name_prefix: str = "packager-temp-"
    auto_delete: bool = False
    poll_interval_ms: int = Field(default=10_000, ge=0)
    poll_max_attempts: int = Field(default=60, ge=1)
    initial_poll_delay_ms: int = Field(default=2_000, ge=0)


class EphemeralRepository(BaseModel):
    name: str
    owner: str
    html_url: str
    is_organization: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)


class WorkflowRun(BaseModel):
    id: int
    status: Optional[str] = None
    conclusion: Optional[str] = None
    html_url: Optional[str] = None


class ReleaseAsset(BaseModel):
    name: str
    download_url: str


class OrchestrationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    repository_url: str
    release_url: str
    asset_name: str
    asset_download_url: str


class BuildRequest(BaseModel):
    file_name: str = Field(..., min_length=1, description="Name of the bundle file, e.g. project.zip")
    content_base64: str = Field(..., description="Bundle bytes, base64 encoded")
    account_name: Optional[str] = None
    template_owner: Optional[str] = None
    template_repo: Optional[str] = None
    workflow_file: Optional[str] = None
    auto_delete: Optional[bool] = None


class BuildJobOut(BaseModel):
    job_id: str
    status: str


class BuildJobDetail(BaseModel):
    job_id: str
    status: str
    file_name: str
    account_name: str
    progress: List[str] = []
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    created_at: datetime
    updated_at: datetime
