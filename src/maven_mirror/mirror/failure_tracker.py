from __future__ import annotations

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional

from maven_mirror.mirror.cache_io import atomic_write_text

logger = logging.getLogger(__name__)


def failure_log_name(started_at: datetime) -> str:
    return f"{started_at:%Y%m%d%H%M%S}{started_at.microsecond // 1000:03d}_failure.log"


class FailureTracker:
    """
    URLs whose latest attempt failed, mirrored to a run-scoped log file.

    The file is rewritten in full on every change, so it always lists the
    outstanding failures rather than a history. Fine while failures stay a
    small fraction of the tree.
    """

    def __init__(self, log_folder: str | Path, *, started_at: Optional[datetime] = None) -> None:
        started_at = started_at or datetime.now()
        self._path = Path(log_folder) / failure_log_name(started_at)
        self._lock = threading.Lock()
        # dict keeps first-failure order in the log file.
        self._failed: dict[str, None] = {}

    @property
    def path(self) -> Path:
        return self._path

    @property
    def failures(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._failed)

    def mark_failed(self, url: str) -> None:
        with self._lock:
            if url in self._failed:
                return
            self._failed[url] = None
            self._write_locked()

    def mark_recovered(self, url: str) -> None:
        with self._lock:
            if url not in self._failed:
                return
            del self._failed[url]
            self._write_locked()

    def _write_locked(self) -> None:
        text = "".join(f"{url}\n" for url in self._failed)
        try:
            atomic_write_text(self._path, text)
        except OSError:
            logger.exception("Failed to write failure log. path=%s", self._path)
