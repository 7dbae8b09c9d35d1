"""Cross-platform system collector built on psutil."""

from __future__ import annotations

import os
import platform
import time
from pathlib import Path

import psutil

from .models import DiskInfo, DiskUsage, DynamicSample, NetworkCounters, StaticInfo


class CollectionError(RuntimeError):
    """Raised when the operating system could not be sampled."""


_PSEUDO_FILESYSTEMS = {"squashfs", "tmpfs", "devtmpfs", "overlay", "iso9660"}


def get_platform() -> str:
    system = platform.system()
    if system == "Windows":
        return "windows"
    if system == "Darwin":
        return "darwin"
    return "linux"


def _is_loopback(name: str) -> bool:
    return name.startswith("lo") or "loopback" in name.lower()


def _read_text(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8", errors="replace").strip()
    except OSError:
        return None


def _cpu_model() -> str:
    cpuinfo = _read_text(Path("/proc/cpuinfo"))
    if cpuinfo:
        for line in cpuinfo.splitlines():
            if line.lower().startswith("model name"):
                return line.split(":", 1)[1].strip()
    return platform.processor() or "Unknown"


def _system_version() -> str:
    system = platform.system()
    if system == "Linux":
        os_release = _read_text(Path("/etc/os-release"))
        if os_release:
            for line in os_release.splitlines():
                if line.startswith("PRETTY_NAME="):
                    return line.split("=", 1)[1].strip().strip('"')
    if system == "Darwin":
        mac_ver = platform.mac_ver()[0]
        if mac_ver:
            return f"macOS {mac_ver}"
    return f"{system} {platform.release()}".strip() or "Unknown"


def _system_model() -> str:
    vendor = _read_text(Path("/sys/class/dmi/id/sys_vendor")) or ""
    product = _read_text(Path("/sys/class/dmi/id/product_name")) or ""
    model = f"{vendor} {product}".strip()
    return model or "Unknown"


def _disk_type(device: str) -> str:
    name = Path(device).name
    if name.startswith("nvme"):
        return "NVMe"
    base = name.rstrip("0123456789")
    if base.endswith("p") and base[:-1].startswith("mmcblk"):
        base = base[:-1]
    rotational = _read_text(Path("/sys/block") / base / "queue" / "rotational")
    if rotational == "0":
        return "SSD"
    if rotational == "1":
        return "HDD"
    return "Unknown"


def _location_from_timezone() -> str:
    """Approximate a location from the timezone name, e.g. America/New_York -> New York."""
    zone = os.environ.get("TZ", "").lstrip(":")
    if not zone:
        try:
            target = os.path.realpath("/etc/localtime")
        except OSError:
            target = ""
        if "zoneinfo/" in target:
            zone = target.split("zoneinfo/", 1)[1]
    if not zone:
        zone = time.tzname[0] if time.tzname else ""
    if not zone:
        return "Unknown"
    return zone.split("/")[-1].replace("_", " ")


def _partitions() -> list:
    seen: set[str] = set()
    out = []
    for part in psutil.disk_partitions(all=False):
        if part.fstype in _PSEUDO_FILESYSTEMS or part.device in seen:
            continue
        seen.add(part.device)
        out.append(part)
    return out


class SystemCollector:
    """Produces static hardware facts and dynamic metric samples."""

    def __init__(self) -> None:
        # Prime non-blocking CPU measurement.
        psutil.cpu_percent(interval=None)

    def get_platform(self) -> str:
        return get_platform()

    def collect_static(self) -> StaticInfo:
        try:
            vm = psutil.virtual_memory()
            swap = psutil.swap_memory()
            disks: list[DiskInfo] = []
            total_disk = 0
            for part in _partitions():
                try:
                    size = int(psutil.disk_usage(part.mountpoint).total)
                except OSError:
                    continue
                total_disk += size
                disks.append(
                    DiskInfo(device=part.device, size=size, type=_disk_type(part.device), filesystem=part.fstype)
                )

            return StaticInfo(
                cpu_model=_cpu_model(),
                cpu_cores=int(psutil.cpu_count(logical=False) or psutil.cpu_count() or 1),
                cpu_arch=platform.machine() or "Unknown",
                system_version=_system_version(),
                system_model=_system_model(),
                total_memory=int(vm.total),
                total_swap=int(swap.total),
                total_disk=total_disk,
                disks=tuple(disks),
                location=_location_from_timezone(),
            )
        except Exception as exc:
            raise CollectionError(f"Failed to collect static system info: {exc}") from exc

    def collect_dynamic(self) -> DynamicSample:
        try:
            timestamp = int(time.time() * 1000)
            freq = psutil.cpu_freq()
            vm = psutil.virtual_memory()
            swap = psutil.swap_memory()

            usages: list[DiskUsage] = []
            total = 0
            used = 0
            for part in _partitions():
                try:
                    du = psutil.disk_usage(part.mountpoint)
                except OSError:
                    continue
                total += du.total
                used += du.used
                usages.append(
                    DiskUsage(
                        device=part.device,
                        size=int(du.total),
                        used=int(du.used),
                        available=int(du.free),
                        usage_percent=float(du.percent),
                        mountpoint=part.mountpoint,
                    )
                )

            rx = 0
            tx = 0
            for name, counters in psutil.net_io_counters(pernic=True).items():
                if _is_loopback(name):
                    continue
                rx += counters.bytes_recv
                tx += counters.bytes_sent

            return DynamicSample(
                cpu_usage=float(psutil.cpu_percent(interval=None)),
                cpu_frequency=(float(freq.current) / 1000.0 if freq else 0.0),
                memory_usage=float(vm.percent),
                swap_usage=(float(swap.percent) if swap.total else 0.0),
                disk_usage=((used / total) * 100.0 if total else 0.0),
                network=NetworkCounters(rx_bytes=rx, tx_bytes=tx),
                timestamp=timestamp,
                disk_usages=tuple(usages),
            )
        except Exception as exc:
            raise CollectionError(f"Failed to collect dynamic system status: {exc}") from exc
