from __future__ import annotations


class MirrorError(Exception):
    """Base class for errors raised by the mirror engine."""


class TransientFetchError(MirrorError):
    """A network or local write failure while fetching one node. Retried."""

    def __init__(self, url: str, cause: BaseException) -> None:
        super().__init__(f"Fetch failed: {url}: {cause!r}")
        self.url = url
        self.cause = cause


class CacheCorruptionError(MirrorError):
    """A directory cache file exists but cannot be decoded."""


class RootValidationError(MirrorError):
    """The repository root is unreachable or does not look like a listing."""


class PersistenceError(MirrorError):
    """Writing an auxiliary artifact (cache entry, failure log) failed."""


class UnsafePathError(MirrorError, ValueError):
    """A listing entry would map outside the mirror or cache folder."""
