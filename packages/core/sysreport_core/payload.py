"""Report payload model and assembly."""

from __future__ import annotations

import socket
from dataclasses import dataclass
from typing import Any

from sysreport_telemetry import DynamicStatus, StaticInfo, get_platform

from .config import AgentConfig
from .errors import StaticInfoMissingError


@dataclass(frozen=True)
class ReportPayload:
    client_id: str
    client_name: str
    client_tags: tuple[str, ...]
    client_purpose: str
    hostname: str
    platform: str
    static_info: StaticInfo
    dynamic_status: DynamicStatus

    def to_dict(self) -> dict[str, Any]:
        return {
            "clientId": self.client_id,
            "clientName": self.client_name,
            "clientTags": list(self.client_tags),
            "clientPurpose": self.client_purpose,
            "hostname": self.hostname,
            "platform": self.platform,
            "staticInfo": self.static_info.to_dict(),
            "dynamicStatus": self.dynamic_status.to_dict(),
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ReportPayload:
        return cls(
            client_id=str(raw["clientId"]),
            client_name=str(raw["clientName"]),
            client_tags=tuple(str(t) for t in raw.get("clientTags", [])),
            client_purpose=str(raw.get("clientPurpose", "")),
            hostname=str(raw["hostname"]),
            platform=str(raw["platform"]),
            static_info=StaticInfo.from_dict(raw["staticInfo"]),
            dynamic_status=DynamicStatus.from_dict(raw["dynamicStatus"]),
        )


def build_payload(
    identity: str,
    config: AgentConfig,
    static_info: StaticInfo | None,
    platform: str,
    hostname: str,
    dynamic_status: DynamicStatus,
) -> ReportPayload:
    if static_info is None:
        raise StaticInfoMissingError("Static system info not set. Call set_static_info() first.")
    return ReportPayload(
        client_id=identity,
        client_name=config.client_name,
        client_tags=tuple(config.client_tags),
        client_purpose=config.client_purpose,
        hostname=hostname,
        platform=platform,
        static_info=static_info,
        dynamic_status=dynamic_status,
    )


class PayloadAssembler:
    """Holds the per-process context every payload shares."""

    def __init__(
        self,
        identity: str,
        config: AgentConfig,
        platform: str | None = None,
        hostname: str | None = None,
    ) -> None:
        self.identity = identity
        self.config = config
        self.platform = platform or get_platform()
        self.hostname = hostname or socket.gethostname()
        self._static_info: StaticInfo | None = None

    @property
    def static_info(self) -> StaticInfo | None:
        return self._static_info

    def set_static_info(self, static_info: StaticInfo) -> None:
        self._static_info = static_info

    def build(self, dynamic_status: DynamicStatus) -> ReportPayload:
        return build_payload(
            self.identity,
            self.config,
            self._static_info,
            self.platform,
            self.hostname,
            dynamic_status,
        )
