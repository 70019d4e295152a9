from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional

from maven_mirror.mirror.utils import join_url


@dataclass(frozen=True, slots=True)
class FetchRequest:
    """
    One pending unit of work: a file, or a directory when ``relative_path`` ends with ``/``.

    Retries are expressed with ``retried()``, which keeps ``queue_id`` so that
    log lines of every attempt of the same node can be correlated.
    """

    base_uri: str
    relative_path: str
    priority: int
    queue_id: int
    fail_count: int = 0

    @property
    def is_directory(self) -> bool:
        return self.relative_path.endswith("/")

    @property
    def url(self) -> str:
        return join_url(self.base_uri, self.relative_path)

    def retried(self) -> FetchRequest:
        return replace(self, fail_count=self.fail_count + 1)

    def child(self, item: str, *, queue_id: int) -> FetchRequest:
        return FetchRequest(
            base_uri=self.base_uri,
            relative_path=self.relative_path + item,
            priority=self.priority - 1,
            queue_id=queue_id,
        )


@dataclass(slots=True)
class DirectoryCacheEntry:
    base_uri: str
    relative_path: str
    items: list[str] = field(default_factory=list)
    expires_at: Optional[datetime] = None

    def is_valid(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at > now


@dataclass(slots=True)
class MirrorStats:
    directories_fetched: int = 0
    directories_from_cache: int = 0
    files_downloaded: int = 0
    files_skipped: int = 0
    retries: int = 0
    abandoned: int = 0
    completed: bool = False
