"""
Observability: structured logs, request context, metrics and health

Environment:
- HEALTHCHAIN_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR, CRITICAL (default INFO)
- HEALTHCHAIN_LOG_FORMAT: json | text (default: json when HEALTHCHAIN_PRODUCTION is set)
- HEALTHCHAIN_PRODUCTION: 1/true/yes switches defaults to production

Usage:
    from healthchain.observability import get_logger

    logger = get_logger(__name__)
    logger.info("Block appended", index=3, kind="CLAIM")

Keyword arguments become structured fields. Names that collide with
LogRecord attributes (name, message, module, ...) get a trailing underscore.
"""

import json
import logging
import os
import sys
import threading
import time
import uuid
from collections import deque
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Deque, Dict, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

REQUEST_ID_HEADER = "X-Request-ID"

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


# ============================================================
# SETTINGS
# ============================================================

_TRUTHY = ("1", "true", "yes")


@dataclass(frozen=True)
class LogSettings:
    level: int = logging.INFO
    json_output: bool = False

    @classmethod
    def from_env(cls) -> "LogSettings":
        production = os.environ.get("HEALTHCHAIN_PRODUCTION", "").lower() in _TRUTHY

        level = logging.getLevelName(os.environ.get("HEALTHCHAIN_LOG_LEVEL", "INFO").upper())
        if not isinstance(level, int):
            level = logging.INFO

        fmt = os.environ.get("HEALTHCHAIN_LOG_FORMAT", "").lower()
        json_output = fmt == "json" or (fmt != "text" and production)

        return cls(level=level, json_output=json_output)


# ============================================================
# FORMATTERS
# ============================================================

# Attributes every LogRecord carries; anything else arrived through `extra`
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime"}

_LOGGING_KWARGS = ("exc_info", "stack_info", "stacklevel", "extra")


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    }


def _json_safe(value: Any) -> Any:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


class StructuredFormatter(logging.Formatter):
    """
    One JSON object per line:

        {"timestamp": "...", "level": "INFO", "logger": "healthchain.core.chain",
         "message": "Claim CLM001 processed: APPROVED", "request_id": "3f2a9c1b0d4e",
         "claim_id": "CLM001", "score": 100}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = request_id_var.get()
        if request_id:
            entry["request_id"] = request_id

        entry.update({k: _json_safe(v) for k, v in _extra_fields(record).items()})

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry)


class TextFormatter(logging.Formatter):
    """Single-line development format with key=value fields appended."""

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created, timezone.utc).strftime("%H:%M:%S.%f")[:-3]
        request_id = request_id_var.get()
        context = f" [{request_id}]" if request_id else ""

        line = f"{stamp} {record.levelname:<8}{context} {record.name}: {record.getMessage()}"

        fields = _extra_fields(record)
        if fields:
            line += " | " + " ".join(f"{k}={v}" for k, v in fields.items())

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


# ============================================================
# LOGGERS
# ============================================================

class ContextLogger(logging.LoggerAdapter):
    """Moves keyword arguments into `extra` so formatters can emit them."""

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        fields = {
            (f"{key}_" if key in _RECORD_ATTRS else key): kwargs.pop(key)
            for key in list(kwargs)
            if key not in _LOGGING_KWARGS
        }
        kwargs["extra"] = {**kwargs.get("extra", {}), **fields}
        return msg, kwargs


def get_logger(name: str) -> ContextLogger:
    return ContextLogger(logging.getLogger(name), {})


def setup_logging(settings: Optional[LogSettings] = None) -> None:
    """
    Install a single stdout handler on the root logger.

    Safe to call repeatedly; earlier handlers are replaced.
    """
    settings = settings or LogSettings.from_env()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(settings.level)
    handler.setFormatter(StructuredFormatter() if settings.json_output else TextFormatter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(settings.level)

    # uvicorn logs each request itself; the middleware already does
    for noisy in ("uvicorn.access", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


# ============================================================
# REQUEST CONTEXT
# ============================================================

class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Binds a request id for the duration of a request, logs the outcome
    with its latency and feeds the request metrics.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        token = request_id_var.set(request_id)
        logger = get_logger("healthchain.request")
        route = f"{request.method} {request.url.path}"
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = (time.perf_counter() - started) * 1000
            get_metrics().record_request(elapsed_ms, success=False)
            logger.exception(f"{route} failed", method=request.method, path=request.url.path)
            raise
        else:
            elapsed_ms = (time.perf_counter() - started) * 1000
            get_metrics().record_request(elapsed_ms, success=response.status_code < 500)
            logger.log(
                logging.WARNING if response.status_code >= 400 else logging.INFO,
                f"{route} -> {response.status_code}",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(elapsed_ms, 2),
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            request_id_var.reset(token)


# ============================================================
# METRICS
# ============================================================

class LatencyWindow:
    """Most recent latency samples, for rough percentiles."""

    def __init__(self, size: int = 1000):
        self._samples: Deque[float] = deque(maxlen=size)

    def add(self, value_ms: float) -> None:
        self._samples.append(value_ms)

    def percentile(self, p: float) -> Optional[float]:
        if not self._samples:
            return None
        ordered = sorted(self._samples)
        return round(ordered[min(int(len(ordered) * p), len(ordered) - 1)], 3)


@dataclass
class MetricsCollector:
    """
    In-process counters for block appends and HTTP requests.

    Values reset with the process.
    """

    blocks_appended: int = 0
    requests_total: int = 0
    requests_failed: int = 0
    seal_latency: LatencyWindow = field(default_factory=LatencyWindow)
    request_latency: LatencyWindow = field(default_factory=LatencyWindow)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def record_append(self, latency_ms: float) -> None:
        with self._lock:
            self.blocks_appended += 1
            self.seal_latency.add(latency_ms)

    def record_request(self, latency_ms: float, success: bool) -> None:
        with self._lock:
            self.requests_total += 1
            self.requests_failed += 0 if success else 1
            self.request_latency.add(latency_ms)

    def get_summary(self) -> Dict[str, Any]:
        with self._lock:
            summary: Dict[str, Any] = {
                "blocks_appended": self.blocks_appended,
                "requests_total": self.requests_total,
                "requests_failed": self.requests_failed,
            }
            for label, window, points in (
                ("seal", self.seal_latency, (0.5, 0.95, 0.99)),
                ("request", self.request_latency, (0.5, 0.95)),
            ):
                for p in points:
                    summary[f"{label}_latency_p{int(p * 100)}_ms"] = window.percentile(p)
            return summary


_metrics = MetricsCollector()


def get_metrics() -> MetricsCollector:
    """Process-wide collector."""
    return _metrics


# ============================================================
# HEALTH
# ============================================================

@dataclass
class HealthStatus:
    healthy: bool
    checks: Dict[str, Dict[str, Any]]
    duration_ms: float


def _chain_integrity_check(chain) -> Dict[str, Any]:
    ledger = chain.ledger
    violation = ledger.find_first_violation()

    result: Dict[str, Any] = {
        "status": "healthy" if violation is None else "unhealthy",
        "valid": violation is None,
        "block_count": ledger.length,
        "tip_hash": ledger.tip.hash[:16] + "...",
        "difficulty": ledger.difficulty,
    }
    if violation is not None:
        result["first_invalid_index"] = violation.index
        result["reason"] = violation.reason.value
    return result


def check_health(chain=None) -> HealthStatus:
    """
    Liveness, plus chain integrity when a HealthInsureChain is given.
    """
    started = time.perf_counter()

    checks: Dict[str, Dict[str, Any]] = {"liveness": {"status": "healthy"}}
    if chain is not None:
        checks["chain_integrity"] = _chain_integrity_check(chain)

    return HealthStatus(
        healthy=all(c["status"] == "healthy" for c in checks.values()),
        checks=checks,
        duration_ms=round((time.perf_counter() - started) * 1000, 2),
    )
