"""Core reporting pipeline: config, identity, throughput, cache, delivery and the reporting loop."""

from .agent import CycleResult, LoopState, ReportingLoop, build_agent
from .cache import CachedReportEntry, ReportCache
from .config import AgentConfig, load_config, normalize_config, save_config
from .delivery import ReportClient
from .diagnostics import build_doctor_payload
from .errors import (
    CollectionError,
    DeliveryError,
    DeliveryErrorKind,
    NetworkError,
    OtherDeliveryError,
    ServerError,
    StartupError,
    StaticInfoMissingError,
    SysReportError,
)
from .identity import get_or_create_id
from .payload import PayloadAssembler, ReportPayload, build_payload
from .scheduler import IntervalScheduler, ThreadScheduler
from .startup import set_run_at_login
from .throughput import ThroughputState, ThroughputTracker

__all__ = [
    "AgentConfig",
    "CachedReportEntry",
    "CollectionError",
    "CycleResult",
    "DeliveryError",
    "DeliveryErrorKind",
    "IntervalScheduler",
    "LoopState",
    "NetworkError",
    "OtherDeliveryError",
    "PayloadAssembler",
    "ReportCache",
    "ReportClient",
    "ReportPayload",
    "ReportingLoop",
    "ServerError",
    "StartupError",
    "StaticInfoMissingError",
    "SysReportError",
    "ThreadScheduler",
    "ThroughputState",
    "ThroughputTracker",
    "build_agent",
    "build_doctor_payload",
    "build_payload",
    "get_or_create_id",
    "load_config",
    "normalize_config",
    "save_config",
    "set_run_at_login",
]
