"""
Logging setup for finstatement.

Console output is human-readable; the rotating file under logs/ holds one
JSON object per record. Every record carries the correlation id of the
pipeline run that emitted it, plus the OpenTelemetry trace/span ids when a
span is active.
"""

import json
import logging
import logging.config
import logging.handlers
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import yaml
from opentelemetry import trace

from .config import get_project_root

LOG_FILE = "finstatement.log"
CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] - %(message)s"
FILTER_PATH = "finstatement.infrastructure.logger.CorrelationIdFilter"

# One value per pipeline run; asyncio tasks inherit a copy
correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


class CorrelationIdFilter(logging.Filter):
    """Stamp records with the current run's correlation id."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id.get() or "none"
        return True


def set_correlation_id(cid: Optional[str] = None) -> str:
    """
    Set the correlation id for the current context.

    Args:
        cid: Correlation id to use. A new UUID4 when omitted.

    Returns:
        The id now in effect.
    """
    cid = cid or str(uuid.uuid4())
    correlation_id.set(cid)
    return cid


def get_correlation_id() -> Optional[str]:
    """Correlation id of the current context, if any."""
    return correlation_id.get()


class JsonFormatter(logging.Formatter):
    """Render a record as a single-line JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
            "correlation_id": getattr(record, "correlation_id", None) or correlation_id.get() or "none",
        }

        span_context = trace.get_current_span().get_span_context()
        if span_context.is_valid:
            entry["trace_id"] = trace.format_trace_id(span_context.trace_id)
            entry["span_id"] = trace.format_span_id(span_context.span_id)

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception_type"] = record.exc_info[0].__name__
            entry["exception"] = self.formatException(record.exc_info)

        entry.update(getattr(record, "extra_fields", {}))
        return json.dumps(entry, default=str)


class ContextAdapter(logging.LoggerAdapter):
    """Attach fixed fields (company, report type, ...) to every record."""

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        extra = dict(kwargs.get("extra") or {})
        extra["extra_fields"] = {**self.extra, **extra.get("extra_fields", {})}
        kwargs["extra"] = extra
        return msg, kwargs


def _resolve(path: Path | str, root: Path) -> Path:
    path = Path(path)
    return path if path.is_absolute() else root / path


def _load_yaml_config(config_path: Path, root: Path) -> dict:
    """Read a dictConfig YAML file and wire in file paths and the correlation filter."""
    with open(config_path, "r") as f:
        config = yaml.safe_load(f) or {}

    config.setdefault("filters", {})["correlation_id"] = {"()": FILTER_PATH}
    for handler in config.get("handlers", {}).values():
        if "filename" in handler:
            handler["filename"] = str(_resolve(handler["filename"], root))
        filters = handler.setdefault("filters", [])
        if "correlation_id" not in filters:
            filters.append("correlation_id")
    return config


def setup_logging(
    config_path: Optional[str] = None,
    log_level: Optional[str] = None,
) -> None:
    """
    Configure logging for the process.

    Uses config/logging.yaml when present, otherwise a console handler plus a
    rotating JSON file handler.

    Args:
        config_path: Logging config YAML, absolute or relative to the project root.
        log_level: Root level override (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    root = get_project_root()
    (root / "logs").mkdir(exist_ok=True)

    config_file = _resolve(config_path or Path("config") / "logging.yaml", root)
    if config_file.exists():
        logging.config.dictConfig(_load_yaml_config(config_file, root))
    else:
        _setup_basic_logging(log_level or "INFO", root / "logs" / LOG_FILE)

    if log_level:
        logging.getLogger().setLevel(log_level.upper())


def _setup_basic_logging(level: str, log_file: Path) -> None:
    """Fallback configuration when no YAML file is available."""
    correlation_filter = CorrelationIdFilter()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.INFO)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))

    json_file = logging.handlers.RotatingFileHandler(
        log_file, maxBytes=10 * 1024 * 1024, backupCount=30, encoding="utf-8"
    )
    json_file.setLevel(logging.DEBUG)
    json_file.setFormatter(JsonFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())
    for handler in (console, json_file):
        handler.addFilter(correlation_filter)
        root_logger.addHandler(handler)


def get_logger(
    name: str,
    context: Optional[dict[str, Any]] = None,
) -> logging.Logger | ContextAdapter:
    """
    Get a logger, wrapped in a ContextAdapter when `context` is given.

    Args:
        name: Dotted logger name under "finstatement".
        context: Fields added to every record.
    """
    logger = logging.getLogger(name)
    return ContextAdapter(logger, context) if context else logger


def log_operation(
    logger: logging.Logger,
    operation: str,
    success: bool,
    duration_ms: Optional[float] = None,
    **fields: Any,
) -> None:
    """
    Log the outcome of an operation as a structured record.

    Successes log at INFO, failures at ERROR. `fields` land in the JSON output.
    """
    extra_fields: dict[str, Any] = {"operation": operation, "success": success, **fields}
    if duration_ms is not None:
        extra_fields["duration_ms"] = duration_ms

    outcome = "succeeded" if success else "failed"
    logger.log(
        logging.INFO if success else logging.ERROR,
        f"Operation '{operation}' {outcome}",
        extra={"extra_fields": extra_fields},
    )
