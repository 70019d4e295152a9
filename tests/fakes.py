from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

import aiohttp


def listing(*names: str) -> bytes:
    rows = "".join(f'<a href="{name}" title="{name}">{name}</a>   2024-01-01 00:00   -\n' for name in names)
    return (
        "<html><head><title>Index</title></head><body><h1>Index</h1><hr><pre>"
        '<a href="../">../</a>\n'
        f"{rows}</pre><hr></body></html>"
    ).encode("utf-8")


class FakeStream:
    def __init__(self, body: bytes, *, fail_after_first_chunk: bool = False) -> None:
        self._body = body
        self._fail_after_first_chunk = fail_after_first_chunk

    async def read(self) -> bytes:
        return self._body

    async def iter_chunks(self, chunk_size: int) -> AsyncIterator[bytes]:
        for offset in range(0, len(self._body), chunk_size):
            yield self._body[offset : offset + chunk_size]
            if self._fail_after_first_chunk:
                raise aiohttp.ClientPayloadError("connection reset")


class FakeHttp:
    """In-memory HTTP source. ``failures[url]`` attempts fail before the page is served."""

    def __init__(self, pages: Dict[str, bytes], *, failures: Optional[Dict[str, int]] = None) -> None:
        self.pages = pages
        self.failures = dict(failures or {})
        self.truncated: set[str] = set()
        self.calls: list[str] = []

    def _serve(self, url: str) -> bytes:
        self.calls.append(url)
        remaining = self.failures.get(url, 0)
        if remaining > 0:
            self.failures[url] = remaining - 1
            raise aiohttp.ClientConnectionError(f"connection refused: {url}")
        if url not in self.pages:
            raise aiohttp.ClientConnectionError(f"not found: {url}")
        return self.pages[url]

    @asynccontextmanager
    async def get_stream(self, url: str) -> AsyncIterator[FakeStream]:
        body = self._serve(url)
        yield FakeStream(body, fail_after_first_chunk=url in self.truncated)

    async def get_string(self, url: str) -> str:
        return self._serve(url).decode("utf-8")
