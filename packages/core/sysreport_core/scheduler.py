"""Fixed-cadence schedulers that drive the reporting loop."""

from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod
from typing import Callable

from .logging_setup import get_logger


Tick = Callable[[], None]

logger = get_logger("scheduler")


def next_deadline(previous: float, now: float, interval_s: float) -> tuple[float, int]:
    """Advance ``previous`` by one interval, skipping any deadlines already missed.

    Returns the new deadline and the number of ticks skipped. Missed ticks are
    dropped rather than queued so an overrunning cycle is followed by at most
    one tick.
    """
    deadline = previous + interval_s
    skipped = 0
    while deadline <= now:
        deadline += interval_s
        skipped += 1
    if skipped:
        # The tick at the last missed deadline still fires immediately.
        deadline -= interval_s
        skipped -= 1
    return deadline, skipped


class IntervalScheduler(ABC):
    """Calls ``tick`` every ``interval_s`` seconds until stopped."""

    @abstractmethod
    def start(self, tick: Tick, interval_s: float) -> None: ...

    @abstractmethod
    def stop(self) -> None: ...

    @property
    @abstractmethod
    def running(self) -> bool: ...


class ThreadScheduler(IntervalScheduler):
    """Runs ticks sequentially on a dedicated daemon thread.

    Each run gets its own stop event, so a thread that outlives ``stop`` still
    exits after its current tick instead of resuming alongside a restarted one.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, name: str = "sysreport-loop") -> None:
        self._clock = clock
        self._name = name
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self.skipped_ticks = 0

    @property
    def running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def start(self, tick: Tick, interval_s: float) -> None:
        if interval_s <= 0:
            raise ValueError("interval must be positive")
        if self.running:
            raise RuntimeError("scheduler already running")
        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            args=(tick, interval_s, self._stop),
            name=self._name,
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout_s: float | None = 15.0) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout_s)
            if thread.is_alive():
                logger.warning(
                    "reporting thread still busy after %ss, it will exit after its current tick",
                    timeout_s,
                    extra={"event": "scheduler_stop_timeout"},
                )
        self._thread = None

    def _run(self, tick: Tick, interval_s: float, stop: threading.Event) -> None:
        deadline = self._clock() + interval_s
        while not stop.wait(max(0.0, deadline - self._clock())):
            tick()
            deadline, skipped = next_deadline(deadline, self._clock(), interval_s)
            if skipped:
                self.skipped_ticks += skipped
                logger.warning(
                    "reporting cycle overran the interval, skipped %s tick(s)",
                    skipped,
                    extra={"event": "ticks_skipped"},
                )
