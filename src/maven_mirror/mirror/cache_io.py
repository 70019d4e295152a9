from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from maven_mirror.mirror.errors import CacheCorruptionError, PersistenceError
from maven_mirror.mirror.models import DirectoryCacheEntry
from maven_mirror.mirror.utils import format_rfc3339, parse_rfc3339, resolve_local_path, utc_now

logger = logging.getLogger(__name__)

CACHE_FILE_NAME = "maven_tree_info.json"


def atomic_write_json(path: Path, payload: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    tmp_path.replace(path)


def atomic_write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(text, encoding="utf-8")
    tmp_path.replace(path)


def encode_entry(entry: DirectoryCacheEntry) -> dict:
    return {
        "baseUri": entry.base_uri,
        "relativeUri": entry.relative_path,
        "items": list(entry.items),
        "cacheExpireDate": format_rfc3339(entry.expires_at) if entry.expires_at else None,
    }


def _get(payload: dict, key: str) -> Any:
    # Files written by the .NET tool use PascalCase property names.
    if key in payload:
        return payload[key]
    return payload.get(key[0].upper() + key[1:])


def decode_entry(payload: Any) -> DirectoryCacheEntry:
    if not isinstance(payload, dict):
        raise CacheCorruptionError(f"Cache payload must be an object, got: {type(payload).__name__}")

    base_uri = _get(payload, "baseUri")
    relative_path = _get(payload, "relativeUri")
    items = _get(payload, "items")
    raw_expires = _get(payload, "cacheExpireDate")

    if not isinstance(base_uri, str) or not isinstance(relative_path, str):
        raise CacheCorruptionError("Cache payload is missing baseUri/relativeUri")
    if not isinstance(items, list) or not all(isinstance(item, str) for item in items):
        raise CacheCorruptionError("Cache payload items must be a list of strings")

    expires_at: Optional[datetime] = None
    if raw_expires is not None:
        if not isinstance(raw_expires, str):
            raise CacheCorruptionError("Cache payload cacheExpireDate must be a string")
        try:
            expires_at = parse_rfc3339(raw_expires)
        except ValueError as e:
            raise CacheCorruptionError(f"Invalid cacheExpireDate: {raw_expires}") from e

    return DirectoryCacheEntry(
        base_uri=base_uri,
        relative_path=relative_path,
        items=items,
        expires_at=expires_at,
    )


class DirectoryCache:
    """One JSON listing per directory, laid out under ``root`` like the remote tree."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def directory_for(self, relative_path: str) -> Path:
        return resolve_local_path(self._root, relative_path)

    def path_for(self, relative_path: str) -> Path:
        return self.directory_for(relative_path) / CACHE_FILE_NAME

    def ensure_directory(self, relative_path: str) -> Path:
        directory = self.directory_for(relative_path)
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    def load(self, relative_path: str) -> Optional[DirectoryCacheEntry]:
        path = self.path_for(relative_path)
        try:
            if not path.is_file() or path.stat().st_size == 0:
                return None
            payload = json.loads(path.read_text(encoding="utf-8"))
            return decode_entry(payload)
        except (OSError, ValueError, CacheCorruptionError) as e:
            # json.JSONDecodeError and UnicodeDecodeError are ValueError subclasses.
            logger.warning("Ignoring unreadable directory cache. path=%s error=%s", path, e)
            return None

    def store(self, entry: DirectoryCacheEntry) -> None:
        path = self.path_for(entry.relative_path)
        try:
            atomic_write_json(path, encode_entry(entry))
        except OSError as e:
            raise PersistenceError(f"Failed to write directory cache: {path}") from e

    def is_valid(self, entry: DirectoryCacheEntry, now: Optional[datetime] = None) -> bool:
        return entry.is_valid(now or utc_now())
