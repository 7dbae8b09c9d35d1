"""HTTP delivery of reports to the collector server."""

from __future__ import annotations

import json
import os
import ssl
import urllib.error
import urllib.request
from importlib import metadata

import certifi

from .cache import ReportCache
from .errors import DeliveryError, NetworkError, OtherDeliveryError, ServerError
from .logging_setup import get_logger
from .payload import ReportPayload


REPORTS_PATH = "/api/reports"
REQUEST_TIMEOUT_S = 10.0

logger = get_logger("delivery")


def _version() -> str:
    try:
        return metadata.version("sysreport")
    except metadata.PackageNotFoundError:
        return "0.1.0"


def build_ssl_context() -> ssl.SSLContext:
    """Create TLS context for HTTPS collectors with explicit CA handling."""
    if os.environ.get("SYSREPORT_ALLOW_INSECURE_TLS", "").strip() == "1":
        return ssl._create_unverified_context()

    ca_bundle = os.environ.get("SYSREPORT_CA_BUNDLE", "").strip()
    if ca_bundle:
        return ssl.create_default_context(cafile=ca_bundle)

    return ssl.create_default_context(cafile=certifi.where())


def _error_body(exc: urllib.error.HTTPError) -> str:
    try:
        return exc.read().decode("utf-8", errors="replace")[:500]
    except Exception:
        return ""


class ReportClient:
    """Posts payloads to ``{server_url}/api/reports``.

    ``send`` is a single raw attempt and is what cached-entry retries use.
    ``deliver`` is for freshly built payloads: a success clears the whole
    backlog and a failure caches the payload before the error is re-raised.
    """

    def __init__(self, server_url: str, cache: ReportCache, timeout_s: float = REQUEST_TIMEOUT_S) -> None:
        self.url = server_url.rstrip("/") + REPORTS_PATH
        self.cache = cache
        self.timeout_s = timeout_s
        self._user_agent = f"sysreport/{_version()}"

    def send(self, payload: ReportPayload) -> None:
        try:
            data = json.dumps(payload.to_dict()).encode("utf-8")
            req = urllib.request.Request(
                self.url,
                data=data,
                method="POST",
                headers={"Content-Type": "application/json", "User-Agent": self._user_agent},
            )
            context = build_ssl_context() if self.url.startswith("https:") else None
            with urllib.request.urlopen(req, timeout=self.timeout_s, context=context) as resp:
                status = int(resp.status)
        except urllib.error.HTTPError as exc:
            raise ServerError(exc.code, _error_body(exc)) from exc
        except urllib.error.URLError as exc:
            raise NetworkError(str(exc.reason)) from exc
        except OSError as exc:
            # Timeouts and resets raised while reading the response.
            raise NetworkError(str(exc) or type(exc).__name__) from exc
        except Exception as exc:
            raise OtherDeliveryError(str(exc) or type(exc).__name__) from exc

        if not 200 <= status < 300:
            raise ServerError(status)

    def deliver(self, payload: ReportPayload) -> None:
        try:
            self.send(payload)
        except DeliveryError as exc:
            logger.error(
                "failed to send report: %s",
                exc.classification,
                extra={"event": "report_failed", "kind": exc.kind.value},
            )
            self.cache.cache(payload)
            raise

        logger.info("report sent successfully", extra={"event": "report_sent"})
        self.cache.clear()
