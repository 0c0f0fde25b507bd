from __future__ import annotations

from typing import Dict, List

from loguru import logger

from remote_build.services.extensions.fetcher import SourceFetcher, wrap_extension_source


class ExtensionContext:
    """
    Caller-owned holder for extension sources pulled into a bundle.
    Nothing is stored at module level; create one per packaging run and close it.
    """

    def __init__(self, fetcher: SourceFetcher) -> None:
        self.fetcher = fetcher
        self._sources: Dict[str, str] = {}
        self._closed = False

    async def load(self, url: str) -> str:
        if self._closed:
            raise RuntimeError("ExtensionContext is closed")
        if url in self._sources:
            return self._sources[url]

        # fetchers hand back raw text; wrapping happens here, exactly once
        source = wrap_extension_source(await self.fetcher.fetch_text(url))
        self._sources[url] = source
        logger.info("loaded extension {} ({} chars)", url, len(source))
        return source

    @property
    def urls(self) -> List[str]:
        return list(self._sources)

    def sources(self) -> Dict[str, str]:
        return dict(self._sources)

    def close(self) -> None:
        self._sources.clear()
        self._closed = True

    async def __aenter__(self) -> "ExtensionContext":
        return self

    async def __aexit__(self, *exc) -> None:
        self.close()
