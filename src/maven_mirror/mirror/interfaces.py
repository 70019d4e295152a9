from __future__ import annotations

from typing import AsyncContextManager, AsyncIterator, Protocol, Sequence


class ByteStream(Protocol):
    async def read(self) -> bytes:
        """Read the remaining body."""
        ...

    def iter_chunks(self, chunk_size: int) -> AsyncIterator[bytes]:
        ...


class HttpSource(Protocol):
    def get_stream(self, url: str) -> AsyncContextManager[ByteStream]:
        """
        Open a GET request for ``url``.

        The body is released when the context exits, including on error.
        Non-2xx statuses raise before the context is entered.
        """
        ...

    async def get_string(self, url: str) -> str:
        ...


class LinkSource(Protocol):
    def extract_links(self, html: bytes | str) -> Sequence[str]:
        """Return child hrefs of a listing page, without the parent-navigation link."""
        ...
