import tempfile
import unittest
from datetime import datetime
from pathlib import Path

from maven_mirror.mirror.failure_tracker import FailureTracker, failure_log_name

STARTED_AT = datetime(2026, 3, 4, 5, 6, 7, 891000)


class FailureTrackerTests(unittest.TestCase):
    def test_log_name_uses_run_timestamp_with_milliseconds(self) -> None:
        self.assertEqual(failure_log_name(STARTED_AT), "20260304050607891_failure.log")

    def test_log_file_tracks_outstanding_failures(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            tracker = FailureTracker(Path(tmp) / "log", started_at=STARTED_AT)
            self.assertFalse(tracker.path.exists())

            tracker.mark_failed("http://repo.test/a.jar")
            tracker.mark_failed("http://repo.test/b.jar")
            tracker.mark_failed("http://repo.test/a.jar")
            self.assertEqual(
                tracker.path.read_text(encoding="utf-8"),
                "http://repo.test/a.jar\nhttp://repo.test/b.jar\n",
            )

            tracker.mark_recovered("http://repo.test/a.jar")
            self.assertEqual(tracker.path.read_text(encoding="utf-8"), "http://repo.test/b.jar\n")
            self.assertEqual(tracker.failures, ("http://repo.test/b.jar",))

            tracker.mark_recovered("http://repo.test/b.jar")
            self.assertEqual(tracker.path.read_text(encoding="utf-8"), "")

    def test_recovering_unknown_url_does_not_create_log(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            tracker = FailureTracker(tmp, started_at=STARTED_AT)
            tracker.mark_recovered("http://repo.test/never-failed.jar")
            self.assertFalse(tracker.path.exists())

    def test_write_errors_are_logged_not_raised(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            blocker = Path(tmp) / "log"
            blocker.write_text("", encoding="utf-8")
            tracker = FailureTracker(blocker, started_at=STARTED_AT)

            with self.assertLogs("maven_mirror.mirror.failure_tracker", level="ERROR"):
                tracker.mark_failed("http://repo.test/a.jar")

            self.assertEqual(tracker.failures, ("http://repo.test/a.jar",))


if __name__ == "__main__":
    unittest.main()
