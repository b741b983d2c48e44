# Data Quality Engine - Structured Logging
# Logging with JSON formatting, run-context propagation, and performance tracking

from __future__ import annotations

import json
import logging
import sys
import time
import traceback
from contextvars import ContextVar
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable, Optional, TypeVar, ParamSpec
from uuid import uuid4

from pydantic import BaseModel

# Type variables for decorator typing
P = ParamSpec("P")
T = TypeVar("T")

# Identifies one analyze() call across every component's log lines
run_id_ctx: ContextVar[Optional[str]] = ContextVar("run_id", default=None)


class LogContext(BaseModel):
    """Structured log context for correlation and debugging."""

    run_id: Optional[str] = None
    component: Optional[str] = None
    operation: Optional[str] = None
    duration_ms: Optional[float] = None
    extra: dict[str, Any] = {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, excluding None values."""
        return {k: v for k, v in self.model_dump().items() if v is not None and v != {}}


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter.

    Produces one JSON object per line so logs can be shipped to an
    aggregation system without further parsing rules.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if run_id := run_id_ctx.get():
            log_data["run_id"] = run_id

        if hasattr(record, "context") and isinstance(record.context, LogContext):
            log_data["context"] = record.context.to_dict()

        if hasattr(record, "extra_data") and record.extra_data:
            log_data["extra"] = record.extra_data

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info) if record.exc_info[0] else None
            }

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable text formatter for development environments."""

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m"
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.COLORS["RESET"])
        reset = self.COLORS["RESET"]

        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]

        run_id = run_id_ctx.get()
        context_str = f" [run:{run_id[:8]}]" if run_id else ""

        formatted = (
            f"{timestamp} | "
            f"{color}{record.levelname:8}{reset} | "
            f"{record.name}"
            f"{context_str} | "
            f"{record.getMessage()}"
        )

        if hasattr(record, "extra_data") and record.extra_data:
            formatted += " " + " ".join(f"{k}={v}" for k, v in record.extra_data.items())

        if record.exc_info:
            formatted += "\n" + "".join(traceback.format_exception(*record.exc_info))

        return formatted


class StructuredLogger:
    """
    Structured logger with context propagation.

    Thin facade over a stdlib logger that attaches a LogContext and
    keyword extras to every record.
    """

    def __init__(
        self,
        name: str,
        level: int = logging.INFO,
        use_json: bool = False
    ) -> None:
        self._logger = logging.getLogger(name)
        self._logger.setLevel(level)
        self._logger.propagate = False

        self._logger.handlers.clear()

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter() if use_json else TextFormatter())
        self._logger.addHandler(handler)

    @property
    def name(self) -> str:
        return self._logger.name

    def _log(
        self,
        level: int,
        message: str,
        context: Optional[LogContext] = None,
        **extra: Any
    ) -> None:
        """Internal logging method with context support."""
        if not self._logger.isEnabledFor(level):
            return

        record = self._logger.makeRecord(
            name=self._logger.name,
            level=level,
            fn="",
            lno=0,
            msg=message,
            args=(),
            exc_info=None
        )

        if context:
            record.context = context
        if extra:
            record.extra_data = extra

        self._logger.handle(record)

    def debug(self, message: str, context: Optional[LogContext] = None, **extra: Any) -> None:
        self._log(logging.DEBUG, message, context, **extra)

    def info(self, message: str, context: Optional[LogContext] = None, **extra: Any) -> None:
        self._log(logging.INFO, message, context, **extra)

    def warning(self, message: str, context: Optional[LogContext] = None, **extra: Any) -> None:
        self._log(logging.WARNING, message, context, **extra)

    def error(
        self,
        message: str,
        context: Optional[LogContext] = None,
        exc_info: bool = False,
        **extra: Any
    ) -> None:
        if exc_info:
            self._logger.error(message, exc_info=True, extra={"context": context, "extra_data": extra})
        else:
            self._log(logging.ERROR, message, context, **extra)

    def exception(self, message: str, context: Optional[LogContext] = None, **extra: Any) -> None:
        """Log exception with full traceback."""
        self._logger.exception(message, extra={"context": context, "extra_data": extra})


def log_execution_time(
    logger: Optional[StructuredLogger] = None,
    operation_name: Optional[str] = None,
    warn_threshold_ms: float = 1000.0
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """
    Decorator for logging function execution time.

    Args:
        logger: Logger instance (uses a module logger if None)
        operation_name: Custom operation name (uses function name if None)
        warn_threshold_ms: Threshold in ms above which the timing is logged as a warning
    """
    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        _logger = logger or get_logger(func.__module__)
        _operation = operation_name or func.__name__

        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            start_time = time.perf_counter()
            context = LogContext(operation=_operation, run_id=run_id_ctx.get())

            _logger.debug(f"Starting {_operation}", context=context)

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                duration_ms = (time.perf_counter() - start_time) * 1000
                context.duration_ms = round(duration_ms, 2)
                _logger.error(
                    f"Failed {_operation} after {duration_ms:.2f}ms: {str(e)}",
                    context=context,
                    exc_info=True
                )
                raise

            duration_ms = (time.perf_counter() - start_time) * 1000
            context.duration_ms = round(duration_ms, 2)

            log_method = _logger.warning if duration_ms > warn_threshold_ms else _logger.info
            log_method(f"Completed {_operation} in {duration_ms:.2f}ms", context=context)

            return result

        return wrapper
    return decorator


def set_run_context(run_id: Optional[str] = None) -> str:
    """Bind a run id to every log line emitted in the current context."""
    run_id = run_id or generate_run_id()
    run_id_ctx.set(run_id)
    return run_id


def clear_run_context() -> None:
    """Clear run context after an analysis completes."""
    run_id_ctx.set(None)


def generate_run_id() -> str:
    """Generate unique run ID for correlation."""
    return str(uuid4())


def get_logger(
    name: str,
    use_json: Optional[bool] = None,
    level: Optional[int] = None
) -> StructuredLogger:
    """
    Factory function for creating structured loggers.

    Args:
        name: Logger name (typically __name__)
        use_json: Use JSON format (read from settings if None)
        level: Logging level (read from settings if None)

    Returns:
        Configured StructuredLogger instance
    """
    from quality_engine.core.config import get_settings

    settings = get_settings()
    if use_json is None:
        use_json = settings.log_format.lower() == "json"
    if level is None:
        level = logging.getLevelName(settings.log_level.value)

    return StructuredLogger(name=name, level=level, use_json=use_json)
