import json
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path

from maven_mirror.mirror.cache_io import CACHE_FILE_NAME, DirectoryCache
from maven_mirror.mirror.errors import PersistenceError
from maven_mirror.mirror.models import DirectoryCacheEntry

BASE = "http://repo.test/maven2/"
NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


class DirectoryCacheTests(unittest.TestCase):
    def test_store_writes_json_under_mirrored_path(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            cache = DirectoryCache(tmp)
            entry = DirectoryCacheEntry(
                base_uri=BASE,
                relative_path="/org/example/",
                items=["lib/", "maven-metadata.xml"],
                expires_at=NOW + timedelta(days=30),
            )

            cache.store(entry)

            path = Path(tmp) / "org" / "example" / CACHE_FILE_NAME
            self.assertEqual(cache.path_for("/org/example/"), path)
            payload = json.loads(path.read_text(encoding="utf-8"))
            self.assertEqual(
                payload,
                {
                    "baseUri": BASE,
                    "relativeUri": "/org/example/",
                    "items": ["lib/", "maven-metadata.xml"],
                    "cacheExpireDate": "2026-02-14T12:00:00Z",
                },
            )
            self.assertFalse(path.with_suffix(".json.tmp").exists())

            loaded = cache.load("/org/example/")
            self.assertEqual(loaded, entry)

    def test_missing_empty_and_malformed_files_are_cache_misses(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            cache = DirectoryCache(tmp)
            self.assertIsNone(cache.load("/missing/"))

            cache.ensure_directory("/empty/")
            cache.path_for("/empty/").write_text("", encoding="utf-8")
            self.assertIsNone(cache.load("/empty/"))

            cache.ensure_directory("/broken/")
            cache.path_for("/broken/").write_text('{"baseUri": "x", "items": [', encoding="utf-8")
            with self.assertLogs("maven_mirror.mirror.cache_io", level="WARNING"):
                self.assertIsNone(cache.load("/broken/"))

            cache.ensure_directory("/wrong-types/")
            cache.path_for("/wrong-types/").write_text(
                json.dumps({"baseUri": BASE, "relativeUri": "/wrong-types/", "items": "a.txt"}),
                encoding="utf-8",
            )
            with self.assertLogs("maven_mirror.mirror.cache_io", level="WARNING"):
                self.assertIsNone(cache.load("/wrong-types/"))

    def test_reads_pascal_case_files_with_naive_timestamps(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            cache = DirectoryCache(tmp)
            cache.ensure_directory("/legacy/")
            cache.path_for("/legacy/").write_text(
                json.dumps(
                    {
                        "CacheExpireDate": "2099-01-01T00:00:00.1234567",
                        "BaseUri": BASE,
                        "RelativeUri": "/legacy/",
                        "Items": ["a.jar"],
                    }
                ),
                encoding="utf-8",
            )

            entry = cache.load("/legacy/")

            self.assertIsNotNone(entry)
            self.assertEqual(entry.items, ["a.jar"])
            self.assertTrue(cache.is_valid(entry, NOW))

    def test_validity_requires_future_expiry(self) -> None:
        cache = DirectoryCache("unused")
        entry = DirectoryCacheEntry(base_uri=BASE, relative_path="/", items=[])
        self.assertFalse(cache.is_valid(entry, NOW))

        entry.expires_at = NOW - timedelta(seconds=1)
        self.assertFalse(cache.is_valid(entry, NOW))

        entry.expires_at = NOW + timedelta(seconds=1)
        self.assertTrue(cache.is_valid(entry, NOW))

    def test_store_failure_raises_persistence_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            blocker = Path(tmp) / "cache"
            blocker.write_text("not a directory", encoding="utf-8")
            cache = DirectoryCache(blocker)

            with self.assertRaises(PersistenceError):
                cache.store(DirectoryCacheEntry(base_uri=BASE, relative_path="/a/", items=[], expires_at=NOW))


if __name__ == "__main__":
    unittest.main()
