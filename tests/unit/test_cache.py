import json
import tempfile
import unittest
from pathlib import Path

from helpers import make_payload

from sysreport_core.cache import CACHE_FILE, CachedReportEntry, ReportCache
from sysreport_core.errors import NetworkError, ServerError


def _names(cache: ReportCache) -> list[str]:
    return [e.payload.client_name for e in cache.entries()]


class _Recorder:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: list[str] = []

    def __call__(self, payload):
        self.calls.append(payload.client_name)
        if self.fail:
            raise ServerError(503, "unavailable")


class ReportCacheTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def _cache(self, size=100, retries=3) -> ReportCache:
        return ReportCache(self.dir, cache_size=size, max_retries=retries, clock=lambda: 1_700_000_000.5)

    def test_size_limit_keeps_newest(self):
        cache = self._cache(size=2)
        for name in ("A", "B", "C"):
            cache.cache(make_payload(name))
        self.assertEqual(_names(cache), ["B", "C"])

    def test_many_inserts_never_exceed_capacity(self):
        cache = self._cache(size=3)
        for i in range(10):
            cache.cache(make_payload(f"r{i}"))
            self.assertLessEqual(len(cache), 3)
        self.assertEqual(_names(cache), ["r7", "r8", "r9"])

    def test_overflow_logs_warning(self):
        cache = self._cache(size=1)
        cache.cache(make_payload("A"))
        with self.assertLogs("sysreport.cache", level="WARNING") as logs:
            cache.cache(make_payload("B"))
        self.assertTrue(any("size limit" in line for line in logs.output))

    def test_zero_size_retains_nothing(self):
        cache = self._cache(size=0)
        cache.cache(make_payload("A"))
        self.assertEqual(len(cache), 0)

    def test_entry_timestamp_from_clock(self):
        cache = self._cache()
        cache.cache(make_payload("A"))
        entry = cache.entries()[0]
        self.assertEqual(entry.timestamp, 1_700_000_000_500)
        self.assertEqual(entry.retry_count, 0)

    def test_retry_all_success_empties_oldest_first(self):
        cache = self._cache()
        for name in ("A", "B", "C"):
            cache.cache(make_payload(name))
        deliver = _Recorder()
        delivered = cache.retry_all(deliver)
        self.assertEqual(delivered, 3)
        self.assertEqual(deliver.calls, ["A", "B", "C"])
        self.assertEqual(len(cache), 0)

    def test_retry_all_on_empty_cache_does_nothing(self):
        deliver = _Recorder()
        self.assertEqual(self._cache().retry_all(deliver), 0)
        self.assertEqual(deliver.calls, [])

    def test_failed_retry_keeps_entry_and_counts(self):
        cache = self._cache()
        cache.cache(make_payload("A"))
        cache.retry_all(_Recorder(fail=True))
        self.assertEqual(len(cache), 1)
        self.assertEqual(cache.entries()[0].retry_count, 1)

    def test_dropped_when_retry_count_reaches_max(self):
        cache = self._cache(retries=3)
        cache.cache(make_payload("A"))
        deliver = _Recorder(fail=True)

        cache.retry_all(deliver)
        self.assertEqual(len(cache), 1)
        cache.retry_all(deliver)
        self.assertEqual(len(cache), 1)
        with self.assertLogs("sysreport.cache", level="WARNING"):
            cache.retry_all(deliver)
        self.assertEqual(len(cache), 0)

        cache.retry_all(deliver)
        self.assertEqual(len(deliver.calls), 3)

    def test_zero_max_retries_drops_on_first_failure(self):
        cache = self._cache(retries=0)
        cache.cache(make_payload("A"))
        cache.retry_all(_Recorder(fail=True))
        self.assertEqual(len(cache), 0)

    def test_mixed_outcomes(self):
        cache = self._cache()
        for name in ("A", "B", "C"):
            cache.cache(make_payload(name))

        def deliver(payload):
            if payload.client_name == "B":
                raise NetworkError("timed out")

        self.assertEqual(cache.retry_all(deliver), 2)
        self.assertEqual(_names(cache), ["B"])

    def test_unexpected_error_mid_pass_keeps_cache_consistent(self):
        cache = self._cache()
        for name in ("A", "B", "C", "D"):
            cache.cache(make_payload(name))
        sent = []

        def deliver(payload):
            if payload.client_name == "B":
                raise NetworkError("timed out")
            if payload.client_name == "C":
                raise OSError("socket closed")
            sent.append(payload.client_name)

        with self.assertRaises(OSError):
            cache.retry_all(deliver)

        self.assertEqual(sent, ["A"])
        self.assertEqual(_names(cache), ["B", "C", "D"])
        self.assertEqual([e.retry_count for e in cache.entries()], [1, 0, 0])
        reloaded = self._cache()
        self.assertEqual(reloaded.entries(), cache.entries())

    def test_persist_and_reload_round_trip(self):
        cache = self._cache()
        for i, name in enumerate(("A", "B", "C")):
            cache.cache(make_payload(name, timestamp=1_700_000_000_000 + i))

        def deliver(payload):
            if payload.client_name == "B":
                raise NetworkError("down")

        cache.retry_all(deliver)
        cache.cache(make_payload("D"))

        reloaded = self._cache()
        self.assertEqual(reloaded.entries(), cache.entries())

    def test_file_holds_array_of_entries(self):
        cache = self._cache()
        cache.cache(make_payload("A"))
        raw = json.loads((self.dir / CACHE_FILE).read_text(encoding="utf-8"))
        self.assertEqual(len(raw), 1)
        self.assertEqual(set(raw[0]), {"payload", "timestamp", "retryCount"})
        self.assertEqual(raw[0]["payload"]["clientName"], "A")

    def test_retry_all_replaces_file_contents(self):
        cache = self._cache()
        cache.cache(make_payload("A"))
        cache.cache(make_payload("B"))
        cache.retry_all(lambda p: None)
        self.assertEqual(json.loads((self.dir / CACHE_FILE).read_text(encoding="utf-8")), [])

    def test_clear_persists_empty_state(self):
        cache = self._cache()
        cache.cache(make_payload("A"))
        cache.clear()
        self.assertEqual(len(cache), 0)
        self.assertEqual(len(self._cache()), 0)

    def test_corrupt_file_starts_empty(self):
        (self.dir / CACHE_FILE).write_text("{not json", encoding="utf-8")
        with self.assertLogs("sysreport.cache", level="ERROR"):
            cache = self._cache()
        self.assertEqual(len(cache), 0)

    def test_missing_file_starts_empty(self):
        self.assertEqual(len(self._cache()), 0)

    def test_load_applies_current_limits(self):
        entries = [
            CachedReportEntry(payload=make_payload(name), timestamp=i, retry_count=retries).to_dict()
            for i, (name, retries) in enumerate([("A", 0), ("B", 2), ("C", 0), ("D", 1)])
        ]
        (self.dir / CACHE_FILE).write_text(json.dumps(entries), encoding="utf-8")
        cache = self._cache(size=2, retries=2)
        self.assertEqual(_names(cache), ["C", "D"])

    def test_write_failure_keeps_entry_in_memory(self):
        blocker = self.dir / "not-a-dir"
        blocker.write_text("", encoding="utf-8")
        cache = ReportCache(blocker, cache_size=10, max_retries=3)
        with self.assertLogs("sysreport.cache", level="ERROR"):
            cache.cache(make_payload("A"))
        self.assertEqual(len(cache), 1)


if __name__ == "__main__":
    unittest.main()
