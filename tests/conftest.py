"""
Shared fixtures: in-memory stand-ins for the GitHub REST API and Mongo.

FakeGitHub answers every endpoint a remote build touches and records the
requests it sees, so tests can assert on ordering and on what was (not) sent.
FakeMotorClient exposes a mongomock store through motor's awaitable API.
"""

import json
import re
from typing import Any, Dict, List, Optional

import httpx
import pytest
import mongomock
from pydantic import SecretStr

from remote_build.core.config import settings
from remote_build.db import mongo
from remote_build.schemas.build import UploadRequest
from remote_build.services.github.client import GitHubClient

TOKEN = "ghp_test_token_123"
ACCOUNT = "octo"
RUN_ID = 4242


class FakeGitHub:
    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.account_status = 200
        self.account_type = "User"
        self.generate_status = 201
        self.generate_html_url: Optional[str] = None
        self.workflow_put_status = 201
        self.upload_status = 201
        self.dispatch_status = 204
        # one entry per runs-list call; the last entry repeats
        self.run_sequence: List[Any] = [{"status": "completed", "conclusion": "success"}]
        self.release_status = 200
        self.release: Dict[str, Any] = {
            "html_url": "https://github.com/octo/repo/releases/tag/deep-sea-build",
            "assets": [
                {"name": "app-debug.apk", "browser_download_url": "https://example.test/app-debug.apk"},
                {"name": "other.apk", "browser_download_url": "https://example.test/other.apk"},
            ],
        }
        self.delete_status = 204
        self.delete_raises = False
        self._list_calls = 0
        self._current: Any = None

    # helpers for assertions
    def calls(self, method: str, pattern: str) -> List[httpx.Request]:
        rx = re.compile(pattern)
        return [r for r in self.requests if r.method == method and rx.search(r.url.path)]

    def body(self, request: httpx.Request) -> Dict[str, Any]:
        return json.loads(request.content or b"{}")

    def _entry(self) -> Any:
        idx = min(self._list_calls, len(self.run_sequence) - 1)
        self._list_calls += 1
        return self.run_sequence[idx]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        m = request.method

        if m == "GET" and path.startswith("/users/"):
            return httpx.Response(self.account_status, json={"login": path.rsplit("/", 1)[-1], "type": self.account_type})

        if m == "POST" and path.endswith("/generate"):
            if self.generate_status >= 300:
                return httpx.Response(self.generate_status, text="template not found")
            name = self.body(request)["name"]
            html = self.generate_html_url or f"https://github.com/{ACCOUNT}/{name}"
            return httpx.Response(self.generate_status, json={"name": name, "html_url": html})

        if m == "PUT" and "/contents/.github/workflows/" in path:
            if self.workflow_put_status >= 300:
                return httpx.Response(self.workflow_put_status, text="workflow scope missing")
            return httpx.Response(self.workflow_put_status, json={"content": {"path": path}})

        if m == "PUT" and "/contents/" in path:
            if self.upload_status >= 300:
                return httpx.Response(self.upload_status, text="file too large")
            return httpx.Response(self.upload_status, json={"content": {"path": path}})

        if m == "POST" and path.endswith("/dispatches"):
            if self.dispatch_status >= 300:
                return httpx.Response(self.dispatch_status, text="workflow not found")
            return httpx.Response(self.dispatch_status)

        if m == "GET" and path.endswith("/actions/runs"):
            entry = self._entry()
            self._current = entry
            if entry == "list_error":
                return httpx.Response(502, text="bad gateway")
            if entry == "list_html":
                return httpx.Response(200, text="<html>maintenance</html>")
            if entry == "no_runs":
                return httpx.Response(200, json={"total_count": 0, "workflow_runs": []})
            return httpx.Response(200, json={"total_count": 1, "workflow_runs": [{"id": RUN_ID}]})

        if m == "GET" and re.search(r"/actions/runs/\d+$", path):
            entry = self._current
            if entry == "detail_error":
                return httpx.Response(500, text="oops")
            if entry == "detail_html":
                return httpx.Response(200, text="<html>maintenance</html>")
            if entry == "detail_null_id":
                return httpx.Response(200, json={"id": None, "status": "queued", "conclusion": None})
            return httpx.Response(200, json={"id": RUN_ID, **entry})

        if m == "GET" and path.endswith("/releases/latest"):
            if self.release_status >= 300:
                return httpx.Response(self.release_status, text="Not Found")
            return httpx.Response(200, json=self.release)

        if m == "DELETE":
            if self.delete_raises:
                raise httpx.ConnectError("connection reset", request=request)
            if self.delete_status >= 300:
                return httpx.Response(self.delete_status, json={"message": "Must have admin rights"})
            return httpx.Response(self.delete_status)

        return httpx.Response(404, text=f"unhandled {m} {path}")


async def no_sleep(seconds: float) -> None:
    return None


class FakeMotorCollection:
    """Async face over a mongomock collection, mirroring motor's awaitable methods."""

    def __init__(self, collection) -> None:
        self._collection = collection

    def __getattr__(self, name):
        attr = getattr(self._collection, name)
        if not callable(attr):
            return attr

        async def call(*args, **kwargs):
            return attr(*args, **kwargs)

        return call


class FakeMotorDatabase:
    def __init__(self, db) -> None:
        self._db = db

    def __getitem__(self, name: str) -> FakeMotorCollection:
        return FakeMotorCollection(self._db[name])

    async def command(self, *args, **kwargs):
        return self._db.command(*args, **kwargs)


class FakeMotorClient:
    def __init__(self) -> None:
        self._client = mongomock.MongoClient()

    def __getitem__(self, name: str) -> FakeMotorDatabase:
        return FakeMotorDatabase(self._client[name])

    def close(self) -> None:
        self._client.close()


@pytest.fixture(autouse=True)
def mongo_db(monkeypatch):
    """Every test gets a fresh in-memory Mongo behind db.mongo.get_db()."""
    client = FakeMotorClient()
    monkeypatch.setattr(mongo, "_client", client)
    return client[settings.MONGODB_DB]


@pytest.fixture
def fake_github():
    return FakeGitHub()


@pytest.fixture
def github_client(fake_github):
    return GitHubClient(
        token=TOKEN,
        base_url="https://api.github.test",
        transport=httpx.MockTransport(fake_github.handler),
    )


@pytest.fixture
def upload_request():
    return UploadRequest(
        content=b"PK\x03\x04 fake zip bytes",
        file_name="my project.zip",
        account_name=ACCOUNT,
        credential=SecretStr(TOKEN),
        poll_interval_ms=10,
        poll_max_attempts=5,
        initial_poll_delay_ms=1,
    )
