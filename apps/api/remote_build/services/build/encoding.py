from __future__ import annotations

import base64
from typing import Iterator

CHUNK_SIZE = 0x8000  # 32 KiB


def iter_chunks(data: bytes, chunk_size: int = CHUNK_SIZE) -> Iterator[memoryview]:
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    view = memoryview(data)
    for start in range(0, len(view), chunk_size):
        yield view[start:start + chunk_size]


def encode_content(data: bytes, chunk_size: int = CHUNK_SIZE) -> str:
    """
    Base64 for the contents API.
    Bytes are gathered chunk by chunk, then encoded once so padding only
    ever appears at the very end.
    """
    buf = bytearray()
    for chunk in iter_chunks(data, chunk_size):
        buf += chunk
    return base64.b64encode(bytes(buf)).decode("ascii")

