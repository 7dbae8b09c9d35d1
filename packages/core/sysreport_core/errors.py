"""Exception hierarchy for the reporting pipeline."""

from __future__ import annotations

from enum import Enum

from sysreport_telemetry import CollectionError


class SysReportError(Exception):
    """Base class for errors raised by the reporting pipeline."""


class StaticInfoMissingError(SysReportError, RuntimeError):
    """A payload was requested before static system info was captured."""


class StartupError(SysReportError):
    """The agent could not reach the running state."""


class DeliveryErrorKind(str, Enum):
    NETWORK = "network"
    SERVER = "server"
    OTHER = "other"


class DeliveryError(SysReportError):
    """A report did not reach the collector. Classified once, at the HTTP boundary."""

    kind: DeliveryErrorKind = DeliveryErrorKind.OTHER

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def classification(self) -> str:
        return self.message


class NetworkError(DeliveryError):
    kind = DeliveryErrorKind.NETWORK

    def __init__(self, reason: str) -> None:
        super().__init__(f"No response from server (network error): {reason}")
        self.reason = reason


class ServerError(DeliveryError):
    kind = DeliveryErrorKind.SERVER

    def __init__(self, status: int, body: str = "") -> None:
        detail = f" - {body}" if body else ""
        super().__init__(f"Server error: {status}{detail}")
        self.status = status
        self.body = body


class OtherDeliveryError(DeliveryError):
    kind = DeliveryErrorKind.OTHER


__all__ = [
    "CollectionError",
    "DeliveryError",
    "DeliveryErrorKind",
    "NetworkError",
    "OtherDeliveryError",
    "ServerError",
    "StartupError",
    "StaticInfoMissingError",
    "SysReportError",
]
