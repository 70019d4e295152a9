from __future__ import annotations

import asyncio
import heapq
import itertools
import threading
from typing import Optional

from maven_mirror.mirror.models import FetchRequest


class RequestQueue:
    """
    Min-priority-first queue of pending fetch requests.

    Equal priorities come out in insertion order. Children of deeper
    directories carry lower priorities, so deep branches drain before
    shallow siblings are started.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._heap: list[tuple[int, int, FetchRequest]] = []
        self._sequence = itertools.count()
        self._not_empty = asyncio.Event()

    def __len__(self) -> int:
        with self._lock:
            return len(self._heap)

    def is_empty(self) -> bool:
        with self._lock:
            return not self._heap

    def enqueue(self, request: FetchRequest) -> None:
        with self._lock:
            heapq.heappush(self._heap, (request.priority, next(self._sequence), request))
            self._not_empty.set()

    def try_dequeue(self) -> Optional[FetchRequest]:
        with self._lock:
            if not self._heap:
                self._not_empty.clear()
                return None
            _, _, request = heapq.heappop(self._heap)
            if not self._heap:
                self._not_empty.clear()
            return request

    async def wait_not_empty(self) -> None:
        await self._not_empty.wait()
