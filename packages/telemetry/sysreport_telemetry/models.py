"""Typed telemetry models and their wire (camelCase JSON) shapes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class DiskInfo:
    device: str
    size: int
    type: str
    filesystem: str

    def to_dict(self) -> dict[str, Any]:
        return {"device": self.device, "size": self.size, "type": self.type, "filesystem": self.filesystem}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> DiskInfo:
        return cls(
            device=str(raw["device"]),
            size=int(raw["size"]),
            type=str(raw.get("type", "Unknown")),
            filesystem=str(raw.get("filesystem", "")),
        )


@dataclass(frozen=True)
class DiskUsage:
    device: str
    size: int
    used: int
    available: int
    usage_percent: float
    mountpoint: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "device": self.device,
            "size": self.size,
            "used": self.used,
            "available": self.available,
            "usagePercent": self.usage_percent,
            "mountpoint": self.mountpoint,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> DiskUsage:
        return cls(
            device=str(raw["device"]),
            size=int(raw["size"]),
            used=int(raw["used"]),
            available=int(raw["available"]),
            usage_percent=float(raw["usagePercent"]),
            mountpoint=str(raw["mountpoint"]),
        )


@dataclass(frozen=True)
class StaticInfo:
    """Hardware and OS facts captured once at startup."""

    cpu_model: str
    cpu_cores: int
    cpu_arch: str
    system_version: str
    system_model: str
    total_memory: int
    total_swap: int
    total_disk: int
    disks: tuple[DiskInfo, ...] = ()
    location: str = "Unknown"

    def to_dict(self) -> dict[str, Any]:
        return {
            "cpuModel": self.cpu_model,
            "cpuCores": self.cpu_cores,
            "cpuArch": self.cpu_arch,
            "systemVersion": self.system_version,
            "systemModel": self.system_model,
            "totalMemory": self.total_memory,
            "totalSwap": self.total_swap,
            "totalDisk": self.total_disk,
            "disks": [d.to_dict() for d in self.disks],
            "location": self.location,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> StaticInfo:
        return cls(
            cpu_model=str(raw["cpuModel"]),
            cpu_cores=int(raw["cpuCores"]),
            cpu_arch=str(raw["cpuArch"]),
            system_version=str(raw["systemVersion"]),
            system_model=str(raw["systemModel"]),
            total_memory=int(raw["totalMemory"]),
            total_swap=int(raw["totalSwap"]),
            total_disk=int(raw["totalDisk"]),
            disks=tuple(DiskInfo.from_dict(d) for d in raw.get("disks", [])),
            location=str(raw.get("location", "Unknown")),
        )


@dataclass(frozen=True)
class NetworkCounters:
    """Cumulative byte counters summed over non-loopback interfaces."""

    rx_bytes: int
    tx_bytes: int


@dataclass(frozen=True)
class DynamicSample:
    cpu_usage: float
    cpu_frequency: float
    memory_usage: float
    swap_usage: float
    disk_usage: float
    network: NetworkCounters
    timestamp: int
    disk_usages: tuple[DiskUsage, ...] = field(default=())


@dataclass(frozen=True)
class DynamicStatus:
    """A dynamic sample with throughput rates in place of raw counters.

    ``network_upload`` and ``network_download`` are bytes per second and
    ``timestamp`` is Unix milliseconds, as sent on the wire.
    """

    cpu_usage: float
    cpu_frequency: float
    memory_usage: float
    swap_usage: float
    disk_usage: float
    network_upload: float
    network_download: float
    timestamp: int
    disk_usages: tuple[DiskUsage, ...] = ()

    @classmethod
    def from_sample(cls, sample: DynamicSample, upload_bps: float, download_bps: float) -> DynamicStatus:
        return cls(
            cpu_usage=sample.cpu_usage,
            cpu_frequency=sample.cpu_frequency,
            memory_usage=sample.memory_usage,
            swap_usage=sample.swap_usage,
            disk_usage=sample.disk_usage,
            network_upload=float(upload_bps),
            network_download=float(download_bps),
            timestamp=sample.timestamp,
            disk_usages=sample.disk_usages,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "cpuUsage": self.cpu_usage,
            "cpuFrequency": self.cpu_frequency,
            "memoryUsage": self.memory_usage,
            "swapUsage": self.swap_usage,
            "diskUsage": self.disk_usage,
            "diskUsages": [d.to_dict() for d in self.disk_usages],
            "networkUpload": self.network_upload,
            "networkDownload": self.network_download,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> DynamicStatus:
        return cls(
            cpu_usage=float(raw["cpuUsage"]),
            cpu_frequency=float(raw["cpuFrequency"]),
            memory_usage=float(raw["memoryUsage"]),
            swap_usage=float(raw["swapUsage"]),
            disk_usage=float(raw["diskUsage"]),
            network_upload=float(raw["networkUpload"]),
            network_download=float(raw["networkDownload"]),
            timestamp=int(raw["timestamp"]),
            disk_usages=tuple(DiskUsage.from_dict(d) for d in raw.get("diskUsages", [])),
        )
