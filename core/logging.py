# ============================================================================
# STRUCTURED LOGGING
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Core - Structured logging with context
# PURPOSE: Consistent, queryable logging across all components
# CREATED: 17 OCT 2026
# ============================================================================
"""
Structured Logging

Provides structured, JSON-formatted logging for the registry monitor.

Features:
- Component-based loggers
- Contextual fields (registry_url, registry_name, source)
- JSON output for log aggregation
- Named checkpoints for lifecycle events

Log lines go to stderr so that stdout carries only check results.

Usage:
    from core.logging import get_logger, log_context

    logger = get_logger("worker.checker")

    with log_context(registry_url="registry.example.com"):
        logger.info("Probe failed", extra={"status_code": 401})
"""

import contextvars
import json
import logging
import os
import sys
from contextlib import contextmanager
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple, Union
from enum import Enum


class ComponentType(str, Enum):
    """Component types for logging categorization."""
    RECONCILER = "reconciler"
    CHECKER = "checker"
    PROBER = "prober"
    SINK = "sink"
    DISCOVERY = "discovery"
    API = "api"


@dataclass
class LogContext:
    """
    Context for structured logging.

    Each asyncio task sees its own context stack, so a checker's
    registry fields never leak into another checker's log lines.
    """
    registry_url: Optional[str] = None
    registry_name: Optional[str] = None
    source: Optional[str] = None
    component: Optional[str] = None
    operation: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict, excluding None values."""
        result = {}
        for key, value in asdict(self).items():
            if value is not None and key != "extra":
                result[key] = value
        if self.extra:
            result.update(self.extra)
        return result


# Task-local context storage
_context_stack: contextvars.ContextVar[Tuple[LogContext, ...]] = contextvars.ContextVar(
    "log_context_stack", default=()
)


def get_current_context() -> LogContext:
    """Get current logging context."""
    stack = _context_stack.get()
    if stack:
        return stack[-1]
    return LogContext()


@contextmanager
def log_context(**kwargs):
    """
    Context manager for adding logging context.

    Args:
        **kwargs: Context fields to add

    Example:
        with log_context(registry_url="registry.example.com", component="checker"):
            logger.info("Checker started")
    """
    parent = get_current_context()
    new_context = LogContext(
        registry_url=kwargs.get("registry_url", parent.registry_url),
        registry_name=kwargs.get("registry_name", parent.registry_name),
        source=kwargs.get("source", parent.source),
        component=kwargs.get("component", parent.component),
        operation=kwargs.get("operation", parent.operation),
        extra={**parent.extra, **kwargs.get("extra", {})},
    )

    token = _context_stack.set(_context_stack.get() + (new_context,))
    try:
        yield new_context
    finally:
        _context_stack.reset(token)


# ============================================================================
# FORMATTERS
# ============================================================================

def _record_data(record: logging.LogRecord) -> Dict[str, Any]:
    """Fields attached by ContextLogger, minus the ambient context."""
    data = getattr(record, "extra", None)
    return data if isinstance(data, dict) else {}


class StructuredFormatter(logging.Formatter):
    """
    One JSON object per log line.

    Context fields are nested under "context" so they never collide with
    the record's own keys.
    """

    def __init__(self, include_context: bool = True):
        super().__init__()
        self.include_context = include_context

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_context:
            context = get_current_context().to_dict()
            if context:
                entry["context"] = context

        data = _record_data(record)
        if data:
            entry["data"] = data

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        entry["origin"] = f"{record.module}.{record.funcName}:{record.lineno}"
        return json.dumps(entry, default=str)


class HumanFormatter(logging.Formatter):
    """Single-line text with the registry context in brackets."""

    _CONTEXT_LABELS = (
        ("registry_name", "registry"),
        ("registry_url", "url"),
        ("source", "source"),
    )

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

        context = get_current_context()
        labels = [
            f"{label}={getattr(context, attr)}"
            for attr, label in self._CONTEXT_LABELS
            if getattr(context, attr)
        ]
        prefix = f" [{', '.join(labels)}]" if labels else ""

        line = f"{timestamp} {record.levelname:<8} {record.name}{prefix}: {record.getMessage()}"

        data = _record_data(record)
        if data:
            line += f" {data}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


# ============================================================================
# LOGGER ADAPTER
# ============================================================================

class ContextLogger(logging.LoggerAdapter):
    """
    Logger adapter tagging every record with its component.

    Caller-supplied extra fields are kept under record.extra; the ambient
    log_context is read by the formatters at format time.
    """

    def process(self, msg, kwargs):
        data = dict(kwargs.pop("extra", None) or {})
        component = (self.extra or {}).get("component")
        if component:
            data.setdefault("component", component)
        kwargs["extra"] = {"extra": data}
        return msg, kwargs


def get_logger(
    name: str,
    component: Optional[ComponentType] = None,
) -> ContextLogger:
    """
    Get a context-aware logger.

    Args:
        name: Logger name (e.g., "orchestrator.loop")
        component: Optional component type for categorization

    Returns:
        ContextLogger instance
    """
    base_logger = logging.getLogger(name)
    component_value = component.value if component is not None else None
    return ContextLogger(base_logger, {"component": component_value})


def configure_logging(
    level: Union[str, int] = "INFO",
    json_output: bool = False,
) -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_output: Use JSON format (for production)
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    if json_output or os.getenv("LOG_FORMAT", "").lower() == "json":
        formatter = StructuredFormatter(include_context=True)
    else:
        formatter = HumanFormatter()

    root = logging.getLogger()
    root.setLevel(level)

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    root.addHandler(handler)


# ============================================================================
# CHECKPOINT LOGGING
# ============================================================================

def log_checkpoint(
    name: str,
    data: Optional[Dict[str, Any]] = None,
    logger: Optional[logging.Logger] = None,
) -> None:
    """
    Log a named checkpoint.

    Checkpoints are named markers for lifecycle events
    (checker_started, checker_stopped, refresh_failed) that can be
    queried to reconstruct what the reconciler did.

    Args:
        name: Checkpoint name
        data: Optional checkpoint data
        logger: Optional specific logger to use
    """
    if logger is None:
        logger = logging.getLogger("checkpoint")

    checkpoint_data: Dict[str, Any] = {
        "checkpoint": name,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    context = get_current_context()
    if context.registry_url:
        checkpoint_data["registry_url"] = context.registry_url
    if context.registry_name:
        checkpoint_data["registry_name"] = context.registry_name

    if data:
        checkpoint_data["data"] = data

    logger.info(f"CHECKPOINT: {name}", extra={"extra": checkpoint_data})


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "ComponentType",
    "LogContext",
    "StructuredFormatter",
    "HumanFormatter",
    "ContextLogger",
    "get_logger",
    "configure_logging",
    "log_context",
    "get_current_context",
    "log_checkpoint",
]
