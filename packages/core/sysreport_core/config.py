"""Agent settings schema and load/save helpers."""

from __future__ import annotations

import json
import os
import platform
import socket
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from .logging_setup import get_logger


logger = get_logger("config")

DEFAULT_SERVER_URL = "http://localhost:7788"
DEFAULT_CACHE_DIR = ".cache"
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

# Field name -> key used in config.json.
_FILE_KEYS = {
    "client_name": "clientName",
    "client_tags": "clientTags",
    "client_purpose": "clientPurpose",
    "server_url": "serverUrl",
    "report_interval": "reportInterval",
    "min_report_interval": "minReportInterval",
    "max_retries": "maxRetries",
    "cache_size": "cacheSize",
    "cache_dir": "cacheDir",
    "log_level": "logLevel",
    "log_dir": "logDir",
    "keep_log_files": "keepLogFiles",
}


def data_root() -> Path:
    system = platform.system()
    if system == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return base / "SysReport"
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support" / "SysReport"
    return Path.home() / ".local" / "share" / "sysreport"


def _hostname() -> str:
    return socket.gethostname() or "unknown-host"


@dataclass
class AgentConfig:
    """Validated settings; intervals are milliseconds."""

    client_name: str = field(default_factory=_hostname)
    client_tags: list[str] = field(default_factory=list)
    client_purpose: str = ""
    server_url: str = DEFAULT_SERVER_URL
    report_interval: int = 60000
    min_report_interval: int = 10000
    max_retries: int = 3
    cache_size: int = 100
    cache_dir: str = DEFAULT_CACHE_DIR
    log_level: str = "INFO"
    log_dir: str | None = None
    keep_log_files: int = 7

    @property
    def report_interval_s(self) -> float:
        return self.report_interval / 1000.0

    def resolved_log_dir(self) -> Path:
        return Path(self.log_dir).expanduser() if self.log_dir else data_root() / "logs"

    def to_dict(self) -> dict[str, Any]:
        return {_FILE_KEYS[f.name]: getattr(self, f.name) for f in fields(self)}


def config_path() -> Path:
    return Path(os.environ.get("SYSREPORT_CONFIG", "config.json"))


def _merge(raw: dict[str, Any]) -> AgentConfig:
    cfg = AgentConfig()
    for name, key in _FILE_KEYS.items():
        if key in raw and raw[key] is not None:
            setattr(cfg, name, raw[key])
    return cfg


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def normalize_config(cfg: AgentConfig) -> AgentConfig:
    defaults = AgentConfig()

    if not isinstance(cfg.client_name, str) or not cfg.client_name.strip():
        cfg.client_name = _hostname()
    if isinstance(cfg.client_tags, list):
        cfg.client_tags = [str(tag) for tag in cfg.client_tags]
    else:
        cfg.client_tags = []
    cfg.client_purpose = str(cfg.client_purpose or "")
    cfg.server_url = str(cfg.server_url or DEFAULT_SERVER_URL).rstrip("/")

    cfg.min_report_interval = max(1000, _as_int(cfg.min_report_interval, defaults.min_report_interval))
    cfg.report_interval = _as_int(cfg.report_interval, defaults.report_interval)
    if cfg.report_interval < cfg.min_report_interval:
        logger.warning(
            "report interval %sms is below minimum %sms, using minimum",
            cfg.report_interval,
            cfg.min_report_interval,
        )
        cfg.report_interval = cfg.min_report_interval

    cfg.max_retries = max(0, _as_int(cfg.max_retries, defaults.max_retries))
    cfg.cache_size = max(0, _as_int(cfg.cache_size, defaults.cache_size))
    cfg.cache_dir = str(cfg.cache_dir or DEFAULT_CACHE_DIR)
    cfg.keep_log_files = max(1, _as_int(cfg.keep_log_files, defaults.keep_log_files))

    level = str(cfg.log_level or "").upper()
    cfg.log_level = level if level in _LOG_LEVELS else "INFO"
    return cfg


def load_config(path: Path | None = None) -> AgentConfig:
    path = path or config_path()
    if not path.exists():
        logger.info("config file %s not found, using defaults", path)
        return AgentConfig()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.error("could not read config file %s: %s; using defaults", path, exc)
        return AgentConfig()

    if not isinstance(raw, dict):
        logger.error("config file %s must contain a JSON object; using defaults", path)
        return AgentConfig()

    return normalize_config(_merge(raw))


def save_config(cfg: AgentConfig, path: Path | None = None) -> Path:
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(cfg.to_dict(), indent=2, sort_keys=True), encoding="utf-8")
    return path
