from fastapi import APIRouter, HTTPException, Query

from remote_build.services.extensions.context import ExtensionContext
from remote_build.services.extensions.fetcher import ExtensionFetchError, build_source_fetcher

router = APIRouter(tags=["extensions"])

@router.get("/extensions/source")
async def extension_source(url: str = Query(..., min_length=1)):
    async with ExtensionContext(build_source_fetcher()) as ctx:
        try:
            source = await ctx.load(url)
        except ExtensionFetchError as e:
            raise HTTPException(status_code=502, detail=str(e))
    return {"url": url, "source": source}
