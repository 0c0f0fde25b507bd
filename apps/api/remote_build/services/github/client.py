from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional
from urllib.parse import quote

import httpx

from remote_build.core.config import settings
from remote_build.services.build.errors import GitHubAPIError


DISPATCH_OK = (200, 201, 202, 204)


@dataclass
class GitHubRateLimit:
    remaining: Optional[int]
    reset_epoch: Optional[int]


class GitHubClient:
    """
    Thin async wrapper over the GitHub REST endpoints a remote build touches.
    A fresh httpx.AsyncClient is opened per call; the token only ever goes
    into the Authorization header.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base = (base_url or settings.GITHUB_API_BASE).rstrip("/")
        self.token = token or getattr(settings, "GITHUB_TOKEN", None)
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "packager-remote-build/0.1",
        }
        if self.token:
            headers["Authorization"] = f"token {self.token}"
        return headers

    def _rate_limit(self, resp: httpx.Response) -> GitHubRateLimit:
        def _to_int(v: Optional[str]) -> Optional[int]:
            try:
                return int(v) if v is not None else None
            except ValueError:
                return None

        remaining = _to_int(resp.headers.get("x-ratelimit-remaining"))
        reset = _to_int(resp.headers.get("x-ratelimit-reset"))
        return GitHubRateLimit(remaining=remaining, reset_epoch=reset)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        ok: Optional[Iterable[int]] = None,
    ) -> httpx.Response:
        url = f"{self.base}{path}"
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            resp = await client.request(method, url, headers=self._headers(), json=json, params=params)

        success = resp.status_code in ok if ok is not None else resp.is_success
        if success:
            return resp

        if resp.status_code in (403, 429):
            rl = self._rate_limit(resp)
            raise GitHubAPIError(
                f"GitHub rate limit or forbidden. status={resp.status_code} "
                f"remaining={rl.remaining} reset={rl.reset_epoch} body={resp.text}",
                status_code=resp.status_code,
                body=resp.text,
            )

        raise GitHubAPIError(
            f"GitHub API error {method} {path} status={resp.status_code} body={resp.text}",
            status_code=resp.status_code,
            body=resp.text,
        )

    @staticmethod
    def _json(resp: httpx.Response) -> Dict[str, Any]:
        if not resp.content:
            return {}
        return resp.json()

    async def get_account(self, account: str) -> Dict[str, Any]:
        return self._json(await self._request("GET", f"/users/{account}"))

    async def generate_from_template(
        self,
        template_owner: str,
        template_repo: str,
        owner: str,
        name: str,
        description: str = "Temp repo created by packager from template",
        private: bool = False,
    ) -> Dict[str, Any]:
        resp = await self._request(
            "POST",
            f"/repos/{template_owner}/{template_repo}/generate",
            json={"owner": owner, "name": name, "description": description, "private": private},
        )
        return self._json(resp)

    async def put_file_contents(
        self, owner: str, repo: str, path: str, content_b64: str, message: str
    ) -> Dict[str, Any]:
        # path segments keep their "/" so nested paths land in directories
        resp = await self._request(
            "PUT",
            f"/repos/{owner}/{repo}/contents/{path}",
            json={"message": message, "content": content_b64},
        )
        return self._json(resp)

    async def dispatch_workflow(self, owner: str, repo: str, workflow_file: str, ref: str) -> None:
        await self._request(
            "POST",
            f"/repos/{owner}/{repo}/actions/workflows/{quote(workflow_file, safe='')}/dispatches",
            json={"ref": ref},
            ok=DISPATCH_OK,
        )

    async def list_runs(self, owner: str, repo: str, per_page: int = 1) -> Dict[str, Any]:
        resp = await self._request("GET", f"/repos/{owner}/{repo}/actions/runs", params={"per_page": per_page})
        return self._json(resp)

    async def get_run(self, owner: str, repo: str, run_id: int) -> Dict[str, Any]:
        return self._json(await self._request("GET", f"/repos/{owner}/{repo}/actions/runs/{run_id}"))

    async def get_latest_release(self, owner: str, repo: str) -> Dict[str, Any]:
        return self._json(await self._request("GET", f"/repos/{owner}/{repo}/releases/latest"))

    async def delete_repo(self, owner: str, repo: str) -> None:
        await self._request("DELETE", f"/repos/{owner}/{repo}")
