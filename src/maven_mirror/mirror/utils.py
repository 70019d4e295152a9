from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path, PureWindowsPath
from urllib.parse import unquote

from maven_mirror.mirror.errors import UnsafePathError

_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_rfc3339(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_rfc3339(value: str) -> datetime:
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    # .NET writes seven fractional digits.
    raw = _FRACTION_RE.sub(r"\1", raw, count=1)
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is None:
        # Older cache files carry local wall-clock time without an offset.
        parsed = parsed.astimezone()
    return parsed


def join_url(base_uri: str, relative_path: str) -> str:
    return base_uri.rstrip("/") + "/" + relative_path.lstrip("/")


def is_safe_segment(segment: str) -> bool:
    if segment in ("", ".", ".."):
        return False
    if any(ch in segment for ch in ("/", "\\", "\x00")):
        return False
    # "C:foo" would re-anchor the path on Windows.
    return not PureWindowsPath(segment).drive


def path_segments(relative_path: str) -> list[str]:
    segments = [unquote(segment) for segment in relative_path.split("/") if segment]
    for segment in segments:
        if not is_safe_segment(segment):
            raise UnsafePathError(f"Unsafe path segment {segment!r} in: {relative_path}")
    return segments


def resolve_local_path(root: Path, relative_path: str) -> Path:
    """Map a listing path such as ``/org/foo/1.0/foo.pom`` under ``root``."""
    return root.joinpath(*path_segments(relative_path))
