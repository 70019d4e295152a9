from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import aiohttp

from maven_mirror.config.models import DEFAULT_USER_AGENT

logger = logging.getLogger(__name__)


class AiohttpStream:
    def __init__(self, response: aiohttp.ClientResponse) -> None:
        self._response = response

    async def read(self) -> bytes:
        return await self._response.read()

    async def iter_chunks(self, chunk_size: int) -> AsyncIterator[bytes]:
        async for chunk in self._response.content.iter_chunked(chunk_size):
            yield chunk


class HttpClient:
    """Shared aiohttp session for one mirror run."""

    def __init__(
        self,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout_seconds: Optional[float] = None,
        connection_limit: int = 100,
    ) -> None:
        self._user_agent = user_agent
        self._timeout_seconds = timeout_seconds
        self._connection_limit = connection_limit
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> HttpClient:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()

    async def start(self) -> None:
        if self._session is not None:
            return
        timeout = aiohttp.ClientTimeout(total=self._timeout_seconds)
        connector = aiohttp.TCPConnector(limit=self._connection_limit)
        self._session = aiohttp.ClientSession(
            timeout=timeout,
            connector=connector,
            headers={"User-Agent": self._user_agent},
        )

    async def stop(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    @asynccontextmanager
    async def get_stream(self, url: str) -> AsyncIterator[AiohttpStream]:
        assert self._session is not None, "HttpClient.start() must be called first"
        logger.debug("http.get url=%s", url)
        async with self._session.get(url) as response:
            response.raise_for_status()
            yield AiohttpStream(response)

    async def get_string(self, url: str) -> str:
        assert self._session is not None, "HttpClient.start() must be called first"
        async with self._session.get(url) as response:
            response.raise_for_status()
            return await response.text()
