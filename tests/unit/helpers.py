"""Shared builders and fakes for the unit tests."""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(ROOT / "apps" / "agent"))

from sysreport_core.config import AgentConfig
from sysreport_core.delivery import ReportClient
from sysreport_core.errors import NetworkError
from sysreport_core.payload import ReportPayload
from sysreport_core.scheduler import IntervalScheduler
from sysreport_telemetry import (
    CollectionError,
    DiskInfo,
    DiskUsage,
    DynamicSample,
    DynamicStatus,
    NetworkCounters,
    StaticInfo,
)


def make_config(**overrides) -> AgentConfig:
    cfg = AgentConfig(
        client_name="test-client",
        client_tags=["tag1", "tag2"],
        client_purpose="testing",
        server_url="http://localhost:7788",
        report_interval=60000,
        min_report_interval=10000,
        max_retries=3,
        cache_size=100,
    )
    for key, value in overrides.items():
        setattr(cfg, key, value)
    return cfg


def make_static() -> StaticInfo:
    return StaticInfo(
        cpu_model="Intel Core i7",
        cpu_cores=8,
        cpu_arch="x86_64",
        system_version="Ubuntu 22.04.3 LTS",
        system_model="Dell XPS",
        total_memory=16_000_000_000,
        total_swap=8_000_000_000,
        total_disk=500_000_000_000,
        disks=(DiskInfo(device="/dev/nvme0n1p2", size=500_000_000_000, type="NVMe", filesystem="ext4"),),
        location="New York",
    )


def make_sample(timestamp: int = 1_700_000_000_000, rx: int = 0, tx: int = 0, cpu: float = 50.0) -> DynamicSample:
    return DynamicSample(
        cpu_usage=cpu,
        cpu_frequency=3.5,
        memory_usage=60.0,
        swap_usage=10.0,
        disk_usage=70.0,
        network=NetworkCounters(rx_bytes=rx, tx_bytes=tx),
        timestamp=timestamp,
        disk_usages=(
            DiskUsage(
                device="/dev/nvme0n1p2",
                size=500_000_000_000,
                used=350_000_000_000,
                available=150_000_000_000,
                usage_percent=70.0,
                mountpoint="/",
            ),
        ),
    )


def make_payload(name: str = "test-client", timestamp: int = 1_700_000_000_000) -> ReportPayload:
    return ReportPayload(
        client_id="test-client-id",
        client_name=name,
        client_tags=("tag1", "tag2"),
        client_purpose="testing",
        hostname="test-hostname",
        platform="linux",
        static_info=make_static(),
        dynamic_status=DynamicStatus.from_sample(make_sample(timestamp=timestamp), 1000.0, 5000.0),
    )


class ManualScheduler(IntervalScheduler):
    """Fires ticks only when the test asks it to."""

    def __init__(self) -> None:
        self.tick = None
        self.interval_s: float | None = None
        self._running = False
        self.stop_calls = 0

    @property
    def running(self) -> bool:
        return self._running

    def start(self, tick, interval_s: float) -> None:
        self.tick = tick
        self.interval_s = interval_s
        self._running = True

    def stop(self) -> None:
        self.stop_calls += 1
        self._running = False

    def fire(self):
        assert self._running, "scheduler is not running"
        return self.tick()


class FakeCollector:
    def __init__(self, samples=None, static=None, platform: str = "linux") -> None:
        self.samples = list(samples or [])
        self.static = static if static is not None else make_static()
        self.platform = platform
        self.dynamic_calls = 0

    def get_platform(self) -> str:
        return self.platform

    def collect_static(self) -> StaticInfo:
        if isinstance(self.static, Exception):
            raise self.static
        return self.static

    def collect_dynamic(self) -> DynamicSample:
        self.dynamic_calls += 1
        if not self.samples:
            raise CollectionError("no sample queued")
        item = self.samples.pop(0)
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item()
        return item


class StubClient(ReportClient):
    """ReportClient whose network attempt is scripted: True succeeds, False fails."""

    def __init__(self, cache, outcomes=None) -> None:
        super().__init__("http://localhost:7788", cache)
        self.outcomes = list(outcomes or [])
        self.sent: list[ReportPayload] = []

    def send(self, payload: ReportPayload) -> None:
        ok = self.outcomes.pop(0) if self.outcomes else True
        self.sent.append(payload)
        if not ok:
            raise NetworkError("connection refused")
