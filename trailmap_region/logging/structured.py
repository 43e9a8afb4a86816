"""
Structured JSON Logger
======================

Bounded Context: Observability Infrastructure

Structured logger that writes one JSON object per record.

Architecture:
- Wraps Python's logging module
- Adds component + typed event + metadata
- Optional bound context merged into every record's metadata
  (e.g. the service_id of a discovery service instance)
- Formats as JSON for stdout/file

Example:
    >>> logger = StructuredLogger(component="aggregator")
    >>> logger.info(
    ...     event=LogEvent.DISCOVERY_COMPLETED,
    ...     message="Discovered 3 regions",
    ...     metadata={'dataset': 'us_states', 'discovered': 3}
    ... )
    >>> scoped = logger.with_context(service_id="discovery_01")
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from .events import LogEvent


class StructuredLogger:
    """
    JSON structured logger.

    Attributes:
        component: Component name (e.g., "loader", "service")
        context: Metadata attached to every record from this logger
        logger: Underlying Python logger instance

    Thread Safety:
        Thread-safe via Python's logging module. Context is fixed at
        construction; with_context() returns a new logger.
    """

    def __init__(
        self,
        component: str,
        level: int = logging.INFO,
        logger_name: Optional[str] = None,
        context: Optional[Mapping[str, Any]] = None
    ):
        """
        Args:
            component: Component identifier (e.g., "loader")
            level: Logging level (default: INFO)
            logger_name: Custom logger name (default: trailmap.<component>)
            context: Metadata merged under each record's own metadata
        """
        self.component = component
        self.context: Dict[str, Any] = dict(context or {})
        self.logger_name = logger_name or f"trailmap.{component}"
        self.logger = logging.getLogger(self.logger_name)
        self.logger.setLevel(level)

        # One JSON handler per named logger, shared by context-bound copies
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(JSONFormatter())
            self.logger.addHandler(handler)

    def with_context(self, **context: Any) -> "StructuredLogger":
        """Logger for the same component with extra bound metadata."""
        return StructuredLogger(
            component=self.component,
            level=self.logger.level,
            logger_name=self.logger_name,
            context={**self.context, **context}
        )

    def _log(
        self,
        level: int,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return

        log_entry: Dict[str, Any] = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': logging.getLevelName(level),
            'component': self.component,
            'event': event.value,
            'message': message,
        }

        merged = {**self.context, **(metadata or {})}
        if merged:
            log_entry['metadata'] = merged

        if exc_info:
            log_entry['exception'] = {
                'type': type(exc_info).__name__,
                'message': str(exc_info)
            }

        self.logger.log(
            level,
            json.dumps(log_entry, default=str),
            exc_info=exc_info if level >= logging.ERROR else None
        )

    def debug(self, event: LogEvent, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.DEBUG, event, message, metadata)

    def info(self, event: LogEvent, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.INFO, event, message, metadata)

    def warning(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None
    ) -> None:
        """
        Log WARNING level message.

        Used for recoverable per-item problems: a skipped feature, a
        rejected coordinate. The exception, if given, is summarized in
        the record but no traceback is attached.

        Example:
            >>> logger.warning(
            ...     event=LogEvent.DATASET_FEATURE_SKIPPED,
            ...     message="Skipping LineString feature",
            ...     metadata={'feature_index': 12}
            ... )
        """
        self._log(logging.WARNING, event, message, metadata, exc_info)

    def error(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None
    ) -> None:
        """
        Log ERROR level message.

        Args:
            event: Typed log event
            message: Human-readable message
            metadata: Additional context
            exc_info: Exception instance for traceback
        """
        self._log(logging.ERROR, event, message, metadata, exc_info)

    def set_level(self, level: int) -> None:
        """Change logging level dynamically."""
        self.logger.setLevel(level)


class JSONFormatter(logging.Formatter):
    """
    Pass-through formatter for StructuredLogger records.

    The message is already a JSON document.
    """

    def format(self, record: logging.LogRecord) -> str:
        return record.getMessage()


def create_logger(
    component: str,
    level: int = logging.INFO,
    **context: Any
) -> StructuredLogger:
    """
    Factory function to create configured StructuredLogger.

    Args:
        component: Component identifier
        level: Logging level (default: INFO)
        **context: Metadata bound to every record (e.g. service_id)

    Returns:
        Configured StructuredLogger instance
    """
    return StructuredLogger(component=component, level=level, context=context)
