from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional

from maven_mirror.mirror.cache_io import DirectoryCache
from maven_mirror.mirror.errors import PersistenceError, TransientFetchError, UnsafePathError
from maven_mirror.mirror.failure_tracker import FailureTracker
from maven_mirror.mirror.interfaces import HttpSource, LinkSource
from maven_mirror.mirror.models import DirectoryCacheEntry, FetchRequest, MirrorStats
from maven_mirror.mirror.request_queue import RequestQueue
from maven_mirror.mirror.utils import resolve_local_path, utc_now

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


def _is_non_empty_file(path: Path) -> bool:
    try:
        return path.is_file() and path.stat().st_size > 0
    except OSError:
        return False


class FetchEngine:
    """
    Runs one attempt for one request.

    Existing local file -> done. Directory with a valid cached listing ->
    expand children without touching the network. Otherwise GET the URL and
    either parse the listing (cache it, expand children) or stream the file
    to disk. A failed attempt is re-queued until ``retry_count`` is reached.
    """

    def __init__(
        self,
        *,
        http: HttpSource,
        links: LinkSource,
        queue: RequestQueue,
        cache: DirectoryCache,
        failures: FailureTracker,
        base_folder: str | Path,
        retry_count: int,
        cache_ttl: timedelta,
        queue_ids: Iterator[int],
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        stats: Optional[MirrorStats] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._http = http
        self._links = links
        self._queue = queue
        self._cache = cache
        self._failures = failures
        self._base_folder = Path(base_folder)
        self._retry_count = retry_count
        self._cache_ttl = cache_ttl
        self._queue_ids = queue_ids
        self._chunk_size = chunk_size
        self._clock = clock
        self.stats = stats or MirrorStats()

    async def process(self, request: FetchRequest, slot_id: int = 0) -> None:
        try:
            await self._attempt(request, slot_id)
        except UnsafePathError as e:
            self._on_unsafe_path(request, e)
            return
        except Exception as e:
            self._on_failure(request, TransientFetchError(request.url, e))
            return
        self._failures.mark_recovered(request.url)

    async def _attempt(self, request: FetchRequest, slot_id: int) -> None:
        local_path = resolve_local_path(self._base_folder, request.relative_path)
        if await asyncio.to_thread(_is_non_empty_file, local_path):
            logger.debug("File already present. queue_id=%s path=%s", request.queue_id, local_path)
            self.stats.files_skipped += 1
            return

        if not request.is_directory:
            await self._download_file(request, local_path, slot_id)
            return

        entry = await asyncio.to_thread(self._load_cached_listing, request.relative_path)
        if entry is not None and self._cache.is_valid(entry, self._clock()):
            logger.info("Found cache. queue_id=%s url=%s items=%d", request.queue_id, request.url, len(entry.items))
            self.stats.directories_from_cache += 1
            self._expand(request, entry.items)
            return

        await self._fetch_directory(request, slot_id)

    def _load_cached_listing(self, relative_path: str) -> Optional[DirectoryCacheEntry]:
        self._cache.ensure_directory(relative_path)
        return self._cache.load(relative_path)

    async def _fetch_directory(self, request: FetchRequest, slot_id: int) -> None:
        async with self._http.get_stream(request.url) as stream:
            body = await stream.read()
        items = list(await asyncio.to_thread(self._links.extract_links, body))
        logger.info(
            "Downloaded index. slot=%s queue_id=%s url=%s items=%d",
            slot_id,
            request.queue_id,
            request.url,
            len(items),
        )

        entry = DirectoryCacheEntry(
            base_uri=request.base_uri,
            relative_path=request.relative_path,
            items=items,
            expires_at=self._clock() + self._cache_ttl,
        )
        try:
            await asyncio.to_thread(self._cache.store, entry)
        except PersistenceError:
            logger.exception("Directory listing was not cached. url=%s", request.url)

        self.stats.directories_fetched += 1
        self._expand(request, items)

    async def _download_file(self, request: FetchRequest, local_path: Path, slot_id: int) -> None:
        async with self._http.get_stream(request.url) as stream:
            logger.info(
                "Downloading file. slot=%s queue_id=%s url=%s path=%s",
                slot_id,
                request.queue_id,
                request.url,
                local_path,
            )
            local_path.parent.mkdir(parents=True, exist_ok=True)
            try:
                with local_path.open("wb") as fh:
                    async for chunk in stream.iter_chunks(self._chunk_size):
                        fh.write(chunk)
            except BaseException:
                # A truncated file would be trusted as complete on the next attempt.
                local_path.unlink(missing_ok=True)
                raise
        self.stats.files_downloaded += 1

    def _expand(self, request: FetchRequest, items: Iterable[str]) -> None:
        count = 0
        for item in items:
            self._queue.enqueue(request.child(item, queue_id=next(self._queue_ids)))
            count += 1
        logger.debug(
            "Queued children. queue_id=%s url=%s count=%d queue=%d",
            request.queue_id,
            request.url,
            count,
            len(self._queue),
        )

    def _on_failure(self, request: FetchRequest, error: TransientFetchError) -> None:
        self._failures.mark_failed(request.url)
        if request.fail_count < self._retry_count:
            logger.warning(
                "Download failed, retrying. queue_id=%s url=%s fail_count=%d error=%r",
                request.queue_id,
                request.url,
                request.fail_count,
                error.cause,
            )
            self.stats.retries += 1
            self._queue.enqueue(request.retried())
            return

        logger.error(
            "Download failed, abandoning. queue_id=%s url=%s attempts=%d",
            request.queue_id,
            request.url,
            request.fail_count + 1,
            exc_info=error.cause,
        )
        self.stats.abandoned += 1

    def _on_unsafe_path(self, request: FetchRequest, error: UnsafePathError) -> None:
        # Retrying cannot change the path, so this is terminal on the first attempt.
        self._failures.mark_failed(request.url)
        logger.error(
            "Refusing to mirror entry outside the target folder. queue_id=%s url=%s error=%s",
            request.queue_id,
            request.url,
            error,
        )
        self.stats.abandoned += 1
