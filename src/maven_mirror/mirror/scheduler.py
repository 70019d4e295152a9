from __future__ import annotations

import asyncio
import logging
from typing import Optional

import aiohttp

from maven_mirror.mirror.errors import RootValidationError
from maven_mirror.mirror.fetch_engine import FetchEngine
from maven_mirror.mirror.interfaces import HttpSource, LinkSource
from maven_mirror.mirror.request_queue import RequestQueue

logger = logging.getLogger(__name__)


async def validate_root(http: HttpSource, links: LinkSource, url: str) -> list[str]:
    """Fetch the repository root and require at least one child link."""
    try:
        text = await http.get_string(url)
    except (aiohttp.ClientError, asyncio.TimeoutError, OSError, ValueError) as e:
        raise RootValidationError(f"URL validation failed: {url}") from e

    found = list(links.extract_links(text))
    if not found:
        raise RootValidationError(f"URL validation failed, no links found: {url}")
    return found


class Scheduler:
    """
    Drains the request queue with at most ``parallel_count`` concurrent attempts.

    The run ends when the queue is empty and no attempt is in flight, checked
    together after every wake-up. Running attempts may enqueue more work, so
    an empty queue alone is not enough.
    """

    def __init__(self, *, queue: RequestQueue, engine: FetchEngine, parallel_count: int) -> None:
        if parallel_count < 1:
            raise ValueError(f"parallel_count must be >= 1, got: {parallel_count}")
        self._queue = queue
        self._engine = engine
        self._parallel_count = parallel_count
        self._stop_event = asyncio.Event()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        self._stop_event.set()

    async def run(self) -> None:
        running: dict[asyncio.Task, int] = {}
        free_slots = list(reversed(range(self._parallel_count)))
        stop_waiter = asyncio.create_task(self._stop_event.wait())
        try:
            while not self._stop_event.is_set():
                while free_slots:
                    request = self._queue.try_dequeue()
                    if request is None:
                        break
                    slot_id = free_slots.pop()
                    task = asyncio.create_task(self._engine.process(request, slot_id))
                    running[task] = slot_id

                if not running and self._queue.is_empty():
                    break

                waiters: set[asyncio.Future] = {stop_waiter, *running}
                queue_waiter: Optional[asyncio.Task] = None
                if free_slots:
                    queue_waiter = asyncio.create_task(self._queue.wait_not_empty())
                    waiters.add(queue_waiter)

                done, _ = await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)

                if queue_waiter is not None and not queue_waiter.done():
                    queue_waiter.cancel()
                for task in done:
                    slot_id = running.pop(task, None)
                    if slot_id is None:
                        continue
                    free_slots.append(slot_id)
                    self._report(task)
        finally:
            stop_waiter.cancel()
            if running:
                logger.info("Cancelling in-flight attempts. count=%d", len(running))
                for task in running:
                    task.cancel()
                await asyncio.gather(*running, return_exceptions=True)

        if self._stop_event.is_set():
            logger.info("Scheduler stopped. pending=%d", len(self._queue))

    @staticmethod
    def _report(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Fetch attempt crashed.", exc_info=exc)
