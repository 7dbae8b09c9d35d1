"""Network throughput derived from cumulative byte counters."""

from __future__ import annotations

from dataclasses import dataclass

from sysreport_telemetry import NetworkCounters


@dataclass
class ThroughputState:
    rx_bytes: int
    tx_bytes: int
    time_s: float


class ThroughputTracker:
    """Turns successive counter readings into upload/download bytes per second.

    Counters can wrap or reset when an interface restarts, so negative deltas
    are clamped to zero. A non-positive time delta (clock rollback) reports
    zero rates but still replaces the stored snapshot.
    """

    def __init__(self) -> None:
        self._state: ThroughputState | None = None

    @property
    def state(self) -> ThroughputState | None:
        return self._state

    def derive_rates(self, raw: NetworkCounters, now: float) -> tuple[float, float]:
        prev = self._state
        self._state = ThroughputState(rx_bytes=raw.rx_bytes, tx_bytes=raw.tx_bytes, time_s=now)
        if prev is None:
            return 0.0, 0.0

        dt = now - prev.time_s
        if dt <= 0:
            return 0.0, 0.0

        upload = max(0, raw.tx_bytes - prev.tx_bytes) / dt
        download = max(0, raw.rx_bytes - prev.rx_bytes) / dt
        return upload, download
