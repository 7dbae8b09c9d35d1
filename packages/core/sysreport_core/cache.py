"""Bounded, disk-backed backlog of reports that failed delivery."""

from __future__ import annotations

import json
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from .errors import DeliveryError
from .logging_setup import get_logger
from .payload import ReportPayload


CACHE_FILE = "failed-reports.json"

DeliverFn = Callable[[ReportPayload], None]
Clock = Callable[[], float]

logger = get_logger("cache")


@dataclass
class CachedReportEntry:
    payload: ReportPayload
    timestamp: int
    retry_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"payload": self.payload.to_dict(), "timestamp": self.timestamp, "retryCount": self.retry_count}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> CachedReportEntry:
        return cls(
            payload=ReportPayload.from_dict(raw["payload"]),
            timestamp=int(raw["timestamp"]),
            retry_count=int(raw.get("retryCount", 0)),
        )


class ReportCache:
    """Oldest-first queue of undelivered reports, rewritten in full on every change.

    Disk write failures are logged and the in-memory collection is kept, so an
    entry is only lost from durability across restarts, never from the live
    backlog.
    """

    def __init__(
        self,
        cache_dir: Path,
        cache_size: int,
        max_retries: int,
        clock: Clock = time.time,
    ) -> None:
        self.path = cache_dir / CACHE_FILE
        self.cache_size = max(0, cache_size)
        self.max_retries = max(0, max_retries)
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: list[CachedReportEntry] = self._load()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def entries(self) -> list[CachedReportEntry]:
        with self._lock:
            return list(self._entries)

    def cache(self, payload: ReportPayload) -> None:
        with self._lock:
            self._entries.append(CachedReportEntry(payload=payload, timestamp=int(self._clock() * 1000)))
            dropped = self._enforce_limit()
            self._save()
            if dropped:
                logger.warning(
                    "cache size limit %s reached, removed %s oldest report(s)",
                    self.cache_size,
                    dropped,
                    extra={"event": "cache_overflow"},
                )
            logger.info("report cached, total cached reports: %s", len(self._entries))

    def retry_all(self, deliver: DeliverFn) -> int:
        """Attempt every cached report once, oldest first; return how many were delivered."""
        with self._lock:
            if not self._entries:
                return 0

            logger.info("retrying %s cached report(s)", len(self._entries))
            entries = self._entries
            remaining: list[CachedReportEntry] = []
            delivered = 0
            processed = 0
            try:
                for entry in entries:
                    try:
                        deliver(entry.payload)
                    except DeliveryError as exc:
                        entry.retry_count += 1
                        if entry.retry_count >= self.max_retries:
                            logger.warning(
                                "dropping cached report from %s after %s failed attempts: %s",
                                entry.timestamp,
                                entry.retry_count,
                                exc,
                                extra={"event": "cache_entry_dropped"},
                            )
                        else:
                            remaining.append(entry)
                    else:
                        delivered += 1
                    processed += 1
            finally:
                # Unattempted entries keep their place behind the survivors.
                self._entries = remaining + entries[processed:]
                self._save()

            if remaining:
                logger.info("%s report(s) still cached after retry", len(remaining))
            else:
                logger.info("all cached reports processed")
            return delivered

    def clear(self) -> None:
        with self._lock:
            if not self._entries:
                return
            count = len(self._entries)
            self._entries = []
            self._save()
            logger.info("cache cleared (%s report(s))", count, extra={"event": "cache_cleared"})

    def _enforce_limit(self) -> int:
        overflow = len(self._entries) - self.cache_size
        if overflow <= 0:
            return 0
        del self._entries[:overflow]
        return overflow

    def _save(self) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            data = json.dumps([e.to_dict() for e in self._entries], indent=2)
            tmp_path.write_text(data, encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as exc:
            logger.error("could not save cache to %s: %s", self.path, exc, extra={"event": "cache_save_failed"})

    def _load(self) -> list[CachedReportEntry]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            entries = [CachedReportEntry.from_dict(item) for item in raw]
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.error("could not load cache from %s: %s", self.path, exc, extra={"event": "cache_load_failed"})
            return []

        # Apply limits that may have been lowered since the file was written.
        kept = [e for e in entries if e.retry_count < max(self.max_retries, 1)]
        overflow = len(kept) - self.cache_size
        if overflow > 0:
            del kept[:overflow]
        if len(kept) != len(entries):
            logger.warning("discarded %s cached report(s) outside current limits", len(entries) - len(kept))
        logger.info("loaded %s cached report(s) from disk", len(kept))
        return kept
