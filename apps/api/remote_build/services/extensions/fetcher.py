from __future__ import annotations

from typing import Optional, Protocol

import httpx
from loguru import logger

from remote_build.core.config import Settings, settings


class ExtensionFetchError(Exception):
    pass


class SourceFetcher(Protocol):
    async def fetch_text(self, url: str) -> str: ...


def wrap_extension_source(source: str) -> str:
    # keeps unsandboxed extensions from leaking globals or clobbering Scratch.*
    return f"(function(Scratch) {{ {source} }})(Scratch);"


class HttpSourceFetcher:
    """
    Plain GET of an extension script.
    With follow_redirects=False any 3xx counts as a failure, which is how the
    strict fetch used for locked-down hosts behaves.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        follow_redirects: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout = timeout
        self.follow_redirects = follow_redirects
        self.transport = transport

    async def fetch_text(self, url: str) -> str:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport, follow_redirects=self.follow_redirects
            ) as client:
                r = await client.get(url)
        except httpx.HTTPError as e:
            raise ExtensionFetchError(f"Error loading extension {url}: {e}") from e

        if not r.is_success:
            raise ExtensionFetchError(f"Error loading extension {url}: HTTP error! status: {r.status_code}")
        return r.text


class FallbackSourceFetcher:
    """Tries `primary`; on any failure logs it and returns what `fallback` fetches."""

    def __init__(self, primary: SourceFetcher, fallback: SourceFetcher) -> None:
        self.primary = primary
        self.fallback = fallback

    async def fetch_text(self, url: str) -> str:
        try:
            return await self.primary.fetch_text(url)
        except Exception as e:
            logger.warning("extension fetch failed for {}, falling back: {}", url, e)
        return await self.fallback.fetch_text(url)


def build_source_fetcher(cfg: Settings = settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> SourceFetcher:
    plain = HttpSourceFetcher(timeout=cfg.HTTP_TIMEOUT_SECONDS, transport=transport)
    if not cfg.EXTENSION_FETCH_FALLBACK:
        return plain
    strict = HttpSourceFetcher(
        timeout=cfg.EXTENSION_STRICT_TIMEOUT_SECONDS,
        follow_redirects=False,
        transport=transport,
    )
    return FallbackSourceFetcher(primary=strict, fallback=plain)
