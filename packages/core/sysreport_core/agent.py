"""Reporting loop: collect, assemble, deliver, and retry on a fixed cadence."""

from __future__ import annotations

import threading
from enum import Enum
from pathlib import Path
from typing import Protocol

from sysreport_telemetry import CollectionError, DynamicSample, DynamicStatus, StaticInfo, SystemCollector

from .cache import ReportCache
from .config import AgentConfig
from .delivery import ReportClient
from .errors import DeliveryError, StartupError
from .identity import get_or_create_id
from .logging_setup import get_logger
from .payload import PayloadAssembler
from .scheduler import IntervalScheduler, ThreadScheduler
from .throughput import ThroughputTracker


logger = get_logger("agent")


class Collector(Protocol):
    def collect_static(self) -> StaticInfo: ...

    def collect_dynamic(self) -> DynamicSample: ...

    def get_platform(self) -> str: ...


class LoopState(str, Enum):
    STOPPED = "Stopped"
    STARTING = "Starting"
    RUNNING = "Running"


class CycleResult(str, Enum):
    REPORTED = "reported"
    COLLECTION_FAILED = "collection_failed"
    DELIVERY_FAILED = "delivery_failed"
    SKIPPED = "skipped"
    ERROR = "error"


class ReportingLoop:
    def __init__(
        self,
        config: AgentConfig,
        collector: Collector,
        assembler: PayloadAssembler,
        cache: ReportCache,
        client: ReportClient,
        scheduler: IntervalScheduler | None = None,
        tracker: ThroughputTracker | None = None,
    ) -> None:
        self.config = config
        self.collector = collector
        self.assembler = assembler
        self.cache = cache
        self.client = client
        self.scheduler = scheduler or ThreadScheduler()
        self.tracker = tracker or ThroughputTracker()
        self._state = LoopState.STOPPED
        self._state_lock = threading.Lock()
        self._cycle_lock = threading.Lock()
        self.skipped_ticks = 0

    @property
    def state(self) -> LoopState:
        return self._state

    def start(self) -> None:
        with self._state_lock:
            if self._state is not LoopState.STOPPED:
                raise RuntimeError(f"reporting loop is already {self._state.value.lower()}")
            self._state = LoopState.STARTING

        logger.info(
            "starting agent name=%s server=%s interval=%sms tags=%s purpose=%s",
            self.config.client_name,
            self.config.server_url,
            self.config.report_interval,
            ", ".join(self.config.client_tags) or "none",
            self.config.client_purpose or "not specified",
            extra={"event": "agent_starting"},
        )
        try:
            static_info = self.collector.collect_static()
        except CollectionError as exc:
            self._state = LoopState.STOPPED
            logger.exception("failed to collect static system info")
            raise StartupError(f"cannot start without static system info: {exc}") from exc
        self.assembler.set_static_info(static_info)

        try:
            self.cache.retry_all(self.client.send)
        except Exception:
            self._state = LoopState.STOPPED
            logger.exception("failed to retry cached reports during startup")
            raise

        self._state = LoopState.RUNNING
        self._tick()
        self.scheduler.start(self._tick, self.config.report_interval_s)
        logger.info("agent started", extra={"event": "agent_started"})

    def stop(self) -> None:
        with self._state_lock:
            if self._state is LoopState.STOPPED:
                logger.warning("agent is not running")
                return
            self.scheduler.stop()
            self._state = LoopState.STOPPED
        logger.info("agent stopped", extra={"event": "agent_stopped"})

    def collect_and_report(self) -> CycleResult:
        try:
            sample = self.collector.collect_dynamic()
        except CollectionError:
            logger.exception("failed to collect system status", extra={"event": "collection_failed"})
            return CycleResult.COLLECTION_FAILED

        upload, download = self.tracker.derive_rates(sample.network, sample.timestamp / 1000.0)
        payload = self.assembler.build(DynamicStatus.from_sample(sample, upload, download))
        try:
            self.client.deliver(payload)
        except DeliveryError as exc:
            # The client has already cached the payload.
            logger.warning("report deferred: %s", exc.classification, extra={"event": "report_deferred"})
            return CycleResult.DELIVERY_FAILED
        return CycleResult.REPORTED

    def _tick(self) -> CycleResult:
        if not self._cycle_lock.acquire(blocking=False):
            self.skipped_ticks += 1
            logger.warning("previous reporting cycle still running, skipping tick", extra={"event": "tick_skipped"})
            return CycleResult.SKIPPED
        try:
            return self.collect_and_report()
        except Exception:
            logger.exception("unexpected error in reporting cycle", extra={"event": "cycle_error"})
            return CycleResult.ERROR
        finally:
            self._cycle_lock.release()


def build_agent(
    config: AgentConfig,
    collector: Collector | None = None,
    scheduler: IntervalScheduler | None = None,
) -> ReportingLoop:
    """Wire the default components for ``config``."""
    cache_dir = Path(config.cache_dir)
    collector = collector or SystemCollector()
    cache = ReportCache(cache_dir, cache_size=config.cache_size, max_retries=config.max_retries)
    assembler = PayloadAssembler(
        identity=get_or_create_id(cache_dir),
        config=config,
        platform=collector.get_platform(),
    )
    client = ReportClient(config.server_url, cache)
    return ReportingLoop(config, collector, assembler, cache, client, scheduler=scheduler)
