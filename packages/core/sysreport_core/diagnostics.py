"""Diagnostics payload for the ``doctor`` command."""

from __future__ import annotations

import platform
import re
import socket
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from sysreport_telemetry import get_platform

from .cache import CACHE_FILE, ReportCache
from .config import AgentConfig, config_path
from .identity import CLIENT_ID_FILE


_SECRET_RE = re.compile(r"(token|secret|password|apikey|api_key|auth)", re.IGNORECASE)


def redact(value: Any) -> Any:
    if isinstance(value, dict):
        out: dict[str, Any] = {}
        for k, v in value.items():
            if _SECRET_RE.search(k):
                out[k] = "***REDACTED***"
            else:
                out[k] = redact(v)
        return out
    if isinstance(value, list):
        return [redact(v) for v in value]
    return value


def _client_id(cache_dir: Path) -> str | None:
    try:
        return (cache_dir / CLIENT_ID_FILE).read_text(encoding="utf-8").strip() or None
    except OSError:
        return None


def build_doctor_payload(cfg: AgentConfig, cfg_path: Path | None = None) -> dict[str, Any]:
    cache_dir = Path(cfg.cache_dir)
    cache = ReportCache(cache_dir, cache_size=cfg.cache_size, max_retries=cfg.max_retries)
    entries = cache.entries()
    return {
        "ts_utc": datetime.now(timezone.utc).isoformat(),
        "platform": get_platform(),
        "platform_detail": platform.platform(),
        "hostname": socket.gethostname(),
        "python": platform.python_version(),
        "config_path": str(cfg_path or config_path()),
        "config": redact(cfg.to_dict()),
        "client_id": _client_id(cache_dir),
        "cache": {
            "path": str(cache_dir / CACHE_FILE),
            "size": len(entries),
            "limit": cfg.cache_size,
            "oldest_timestamp": (entries[0].timestamp if entries else None),
            "retry_counts": [e.retry_count for e in entries],
        },
        "log_dir": str(cfg.resolved_log_dir()),
    }
