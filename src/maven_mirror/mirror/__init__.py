"""Crawl-and-download engine for HTTP directory-listing repositories."""

from maven_mirror.mirror.cache_io import DirectoryCache
from maven_mirror.mirror.copier import MavenCopier
from maven_mirror.mirror.errors import (
    CacheCorruptionError,
    MirrorError,
    PersistenceError,
    RootValidationError,
    TransientFetchError,
)
from maven_mirror.mirror.failure_tracker import FailureTracker
from maven_mirror.mirror.fetch_engine import FetchEngine
from maven_mirror.mirror.models import DirectoryCacheEntry, FetchRequest, MirrorStats
from maven_mirror.mirror.request_queue import RequestQueue
from maven_mirror.mirror.scheduler import Scheduler, validate_root

__all__ = [
    "CacheCorruptionError",
    "DirectoryCache",
    "DirectoryCacheEntry",
    "FailureTracker",
    "FetchEngine",
    "FetchRequest",
    "MavenCopier",
    "MirrorError",
    "MirrorStats",
    "PersistenceError",
    "RequestQueue",
    "RootValidationError",
    "Scheduler",
    "TransientFetchError",
    "validate_root",
]
