"""
Structured logging configuration

Every record is emitted as one JSON object so webhook deliveries and sync
runs can be traced by request id in the log aggregator.
"""

import logging
import os
import re
import sys
import json
import time
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from contextvars import ContextVar
import uuid
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

# Context variables for request tracking
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)
staff_var: ContextVar[Optional[str]] = ContextVar('staff', default=None)

class StructuredFormatter(logging.Formatter):
    """JSON formatter; one object per line on stdout."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "@timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": os.getenv('SERVICE_NAME', 'orderdesk'),
            "environment": os.getenv('ENVIRONMENT', 'development'),
            "version": os.getenv('SERVICE_VERSION', '1.0.0'),
        }

        trace_context = self._get_trace_context()
        if trace_context:
            log_obj["trace"] = trace_context

        log_obj["location"] = {
            "file": record.pathname,
            "line": record.lineno,
            "function": record.funcName,
            "module": record.module
        }

        if record.exc_info:
            log_obj["error"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "stacktrace": traceback.format_exception(*record.exc_info)
            }

        # Fields passed through extra={'extra_fields': {...}}
        if hasattr(record, 'extra_fields'):
            log_obj["custom"] = record.extra_fields

        return json.dumps(log_obj, default=str, ensure_ascii=False)

    def _get_trace_context(self) -> Optional[Dict[str, Any]]:
        context = {
            "request_id": request_id_var.get(),
            "correlation_id": correlation_id_var.get(),
            "staff": staff_var.get(),
        }
        context = {key: value for key, value in context.items() if value}
        return context or None

class SecurityFilter(logging.Filter):
    """Redact marketplace credentials that end up in log messages."""

    SENSITIVE_FIELDS = (
        'password', 'token', 'api_key', 'secret', 'consumer_key',
        'consumer_secret', 'authorization', 'x-api-key',
    )
    _pattern = re.compile(
        r"(?i)\b(" + "|".join(re.escape(field) for field in SENSITIVE_FIELDS) + r")(\s*[=:]\s*)(\S+)"
    )

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = self._pattern.sub(r"\1\2***REDACTED***", message)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True

def setup_logging(service_name: str, level: str = "INFO") -> None:
    """Route every logger through one JSON stdout handler with credential redaction."""
    os.environ['SERVICE_NAME'] = service_name

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter())
    handler.addFilter(SecurityFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers = [handler]

    # Marketplace calls go through httpx; its per-request lines duplicate ours
    for noisy in ('uvicorn.access', 'httpx', 'sqlalchemy.engine'):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    root_logger.info(
        "Logging initialized",
        extra={'extra_fields': {'service': service_name, 'level': level}}
    )

class LoggerAdapter(logging.LoggerAdapter):
    """Injects the current request context into every record's extra fields."""

    def process(self, msg, kwargs):
        extra = kwargs.get('extra', {})

        request_id = request_id_var.get()
        if request_id:
            extra['request_id'] = request_id

        staff = staff_var.get()
        if staff:
            extra['staff'] = staff

        kwargs['extra'] = extra
        return msg, kwargs

def get_logger(name: str) -> LoggerAdapter:
    return LoggerAdapter(logging.getLogger(name), {})

def set_request_context(
    request_id: Optional[str] = None,
    correlation_id: Optional[str] = None,
    staff: Optional[str] = None
) -> None:
    if request_id:
        request_id_var.set(request_id)
    if correlation_id:
        correlation_id_var.set(correlation_id)
    if staff:
        staff_var.set(staff)

def generate_request_id() -> str:
    return str(uuid.uuid4())

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request once with its outcome and echoes X-Request-ID back.

    The staff name header is bound to the request context so that every
    record written while handling an edit carries who made it.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get('X-Request-ID') or generate_request_id()
        set_request_context(
            request_id=request_id,
            correlation_id=request.headers.get('X-Correlation-ID'),
            staff=request.headers.get('X-Staff-Name'),
        )
        logger = get_logger(__name__)
        fields = {'method': request.method, 'path': request.url.path}

        start_time = time.time()
        try:
            response = await call_next(request)
        except Exception:
            fields['duration_ms'] = round((time.time() - start_time) * 1000, 2)
            logger.error(f"{request.method} {request.url.path} failed", exc_info=True,
                         extra={'extra_fields': fields})
            raise

        fields['status_code'] = response.status_code
        fields['duration_ms'] = round((time.time() - start_time) * 1000, 2)
        log = logger.warning if response.status_code >= 500 else logger.info
        log(f"{request.method} {request.url.path} -> {response.status_code}", extra={'extra_fields': fields})
        response.headers['X-Request-ID'] = request_id
        return response
