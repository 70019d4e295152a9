from __future__ import annotations

import itertools
import logging
from datetime import datetime, timedelta
from typing import Optional

from maven_mirror.config.models import MirrorSettings
from maven_mirror.mirror.cache_io import DirectoryCache
from maven_mirror.mirror.failure_tracker import FailureTracker
from maven_mirror.mirror.fetch_engine import FetchEngine
from maven_mirror.mirror.http_client import HttpClient
from maven_mirror.mirror.interfaces import HttpSource, LinkSource
from maven_mirror.mirror.link_extractor import LinkExtractor
from maven_mirror.mirror.models import FetchRequest, MirrorStats
from maven_mirror.mirror.request_queue import RequestQueue
from maven_mirror.mirror.scheduler import Scheduler, validate_root

logger = logging.getLogger(__name__)

ROOT_PATH = "/"


class MavenCopier:
    """One mirror run of ``settings.url`` into ``settings.base_folder``."""

    def __init__(
        self,
        settings: MirrorSettings,
        *,
        http: Optional[HttpSource] = None,
        links: Optional[LinkSource] = None,
        started_at: Optional[datetime] = None,
    ) -> None:
        self._settings = settings
        self._owned_http: Optional[HttpClient] = None
        if http is None:
            self._owned_http = HttpClient(
                user_agent=settings.user_agent,
                timeout_seconds=settings.request_timeout_seconds,
                connection_limit=max(settings.parallel_count, 1),
            )
            http = self._owned_http
        self._http = http
        self._links = links or LinkExtractor()
        self._queue_ids = itertools.count()
        self.stats = MirrorStats()
        self.queue = RequestQueue()
        self.failures = FailureTracker(settings.log_folder, started_at=started_at)
        self.engine = FetchEngine(
            http=self._http,
            links=self._links,
            queue=self.queue,
            cache=DirectoryCache(settings.cache_folder),
            failures=self.failures,
            base_folder=settings.base_folder,
            retry_count=settings.retry_count,
            cache_ttl=timedelta(days=settings.cache_expire_days),
            queue_ids=self._queue_ids,
            chunk_size=settings.chunk_size_bytes,
            stats=self.stats,
        )
        self._scheduler = Scheduler(queue=self.queue, engine=self.engine, parallel_count=settings.parallel_count)

    async def validate(self) -> list[str]:
        if self._owned_http is None:
            return await validate_root(self._http, self._links, self._settings.url)
        async with self._owned_http:
            return await validate_root(self._http, self._links, self._settings.url)

    async def start(self) -> MirrorStats:
        if self._owned_http is None:
            return await self._run()
        async with self._owned_http:
            return await self._run()

    def stop(self) -> None:
        self._scheduler.stop()

    async def _run(self) -> MirrorStats:
        url = self._settings.url
        links = await validate_root(self._http, self._links, url)
        logger.info(
            "Mirroring started. url=%s base_folder=%s parallel=%d root_links=%d",
            url,
            self._settings.base_folder,
            self._settings.parallel_count,
            len(links),
        )

        self.queue.enqueue(
            FetchRequest(base_uri=url, relative_path=ROOT_PATH, priority=0, queue_id=next(self._queue_ids))
        )
        await self._scheduler.run()

        if self._scheduler.stopped:
            logger.warning("Mirroring stopped before completion. pending=%d", len(self.queue))
        self.stats.completed = not self._scheduler.stopped
        outcome = "finished" if self.stats.completed else "stopped"
        logger.info(
            "Mirroring %s. directories_fetched=%d directories_from_cache=%d files_downloaded=%d "
            "files_skipped=%d retries=%d abandoned=%d",
            outcome,
            self.stats.directories_fetched,
            self.stats.directories_from_cache,
            self.stats.files_downloaded,
            self.stats.files_skipped,
            self.stats.retries,
            self.stats.abandoned,
        )
        outstanding = self.failures.failures
        if outstanding:
            logger.warning("Some URLs could not be mirrored. count=%d log=%s", len(outstanding), self.failures.path)
        return self.stats
