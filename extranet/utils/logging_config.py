"""
Structured Logging Configuration

Provides JSON-formatted logging with:
- Request ID tracking
- Price materialization events
- Structured output for log aggregation
"""

import logging
import json
import sys
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional, Any, Dict
from contextvars import ContextVar

# Context variables for request tracking
request_id_var: ContextVar[str] = ContextVar('request_id', default='')


class JSONFormatter(logging.Formatter):
    """
    Custom JSON formatter for structured logging.
    Outputs logs in JSON format for easy parsing by log aggregators.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = request_id_var.get()
        if request_id:
            log_data["request_id"] = request_id

        log_data["module"] = record.module
        log_data["function"] = record.funcName
        log_data["line"] = record.lineno

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, 'extra_data'):
            log_data["data"] = record.extra_data

        if hasattr(record, 'duration_ms'):
            log_data["duration_ms"] = record.duration_ms

        if hasattr(record, 'entity_type'):
            log_data["entity_type"] = record.entity_type
        if hasattr(record, 'entity_id'):
            log_data["entity_id"] = record.entity_id

        return json.dumps(log_data, ensure_ascii=False, default=_json_default)


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


class StructuredLogger(logging.LoggerAdapter):
    """
    Logger adapter that adds structured context to log messages.
    """

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = kwargs.get('extra', {})
        extra.update(self.extra)
        kwargs['extra'] = extra
        return msg, kwargs

    def log_with_context(
        self,
        level: int,
        msg: str,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        duration_ms: Optional[float] = None,
        **extra_data
    ):
        """Log with additional structured context."""
        extra = {}
        if entity_type:
            extra['entity_type'] = entity_type
        if entity_id:
            extra['entity_id'] = entity_id
        if duration_ms is not None:
            extra['duration_ms'] = duration_ms
        if extra_data:
            extra['extra_data'] = extra_data

        self.log(level, msg, extra=extra)

    def price_materialized(self, room_type_id: int, rate_plan_id: int, day: date, price: Decimal):
        """Log a derived price inserted by a catalog fill."""
        self.log_with_context(
            logging.INFO,
            f"Derived price materialized: room_type={room_type_id} plan={rate_plan_id} date={day}",
            entity_type="room_price",
            entity_id=f"{room_type_id}:{rate_plan_id}:{day.isoformat()}",
            price=price
        )

    def derivation_rejected(self, room_type_id: int, rate_plan_id: int, day: date, reason: str):
        """Log a derivation that produced no usable price."""
        self.log_with_context(
            logging.WARNING,
            f"Derivation rejected: room_type={room_type_id} plan={rate_plan_id} date={day}: {reason}",
            entity_type="room_price",
            entity_id=f"{room_type_id}:{rate_plan_id}:{day.isoformat()}",
            reason=reason
        )

    def fill_conflict(self, room_type_id: int, rate_plan_id: int, day: date):
        """Log a lost insert race; the winning row is served instead."""
        self.log_with_context(
            logging.INFO,
            f"Concurrent fill detected, serving existing row: room_type={room_type_id} plan={rate_plan_id} date={day}",
            entity_type="room_price",
            entity_id=f"{room_type_id}:{rate_plan_id}:{day.isoformat()}"
        )

    def partner_prices_saved(self, room_type_id: int, written: int, skipped: int, duration_ms: float = None):
        """Log the outcome of a partner save."""
        self.log_with_context(
            logging.INFO,
            f"Partner save for room_type={room_type_id}: {written} written, {skipped} skipped",
            entity_type="room_type",
            entity_id=str(room_type_id),
            duration_ms=duration_ms,
            written=written,
            skipped=skipped
        )

    def api_request(self, method: str, path: str, status_code: int, duration_ms: float):
        """Log API request with performance data."""
        self.log_with_context(
            logging.INFO,
            f"{method} {path} - {status_code}",
            duration_ms=duration_ms,
            method=method,
            path=path,
            status_code=status_code
        )


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    include_uvicorn: bool = True
) -> None:
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: Use JSON format (True for production)
        include_uvicorn: Also configure uvicorn loggers
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)

    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    logging.getLogger("extranet").setLevel(log_level)

    if include_uvicorn:
        for logger_name in ["uvicorn", "uvicorn.access", "uvicorn.error"]:
            logging.getLogger(logger_name).handlers = [handler]

    # Reduce noise from third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger for the given module."""
    return StructuredLogger(logging.getLogger(name), {})


def set_request_context(request_id: str):
    """Set context for the current request."""
    request_id_var.set(request_id)


def clear_request_context():
    """Clear request context."""
    request_id_var.set('')
