"""System telemetry collection for SysReport."""

from .models import DiskInfo, DiskUsage, DynamicSample, DynamicStatus, NetworkCounters, StaticInfo
from .provider import CollectionError, SystemCollector, get_platform

__all__ = [
    "CollectionError",
    "DiskInfo",
    "DiskUsage",
    "DynamicSample",
    "DynamicStatus",
    "NetworkCounters",
    "StaticInfo",
    "SystemCollector",
    "get_platform",
]
