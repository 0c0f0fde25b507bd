from __future__ import annotations

import inspect
from typing import Any, Callable, Optional

from loguru import logger

ProgressCallback = Callable[[str], Any]


async def emit(callback: Optional[ProgressCallback], msg: str) -> None:
    """Hand `msg` to the observer. Sync or async callbacks both work; their errors never escape."""
    if not callable(callback):
        return
    try:
        result = callback(msg)
        if inspect.iscoroutine(result):
            await result
    except Exception as e:
        logger.debug("progress callback raised: {!r}", e)
