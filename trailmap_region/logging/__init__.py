"""
Structured Logging for TrailMap
===============================

Bounded Context: Observability

JSON-structured logging shared by the region core, the MQTT layer and
the discovery service.

Design:
- JSON output (one object per line, parseable by log aggregators)
- Typed events (enums prevent typos)
- Contextual metadata (dataset, owner_id, region counts, etc.)
- Thread-safe

Public API
----------
    LogEvent: Typed event names (enum)
    StructuredLogger: JSON logger implementation
    create_logger: Factory function

Example:
    >>> from trailmap_region.logging import create_logger, LogEvent
    >>> logger = create_logger("loader")
    >>> logger.info(
    ...     event=LogEvent.DATASET_LOADED,
    ...     message="Loaded 50 regions",
    ...     metadata={'dataset': 'us_states', 'region_count': 50}
    ... )

Output:
    {"timestamp": "2026-10-19T15:30:45.123456+00:00", "level": "INFO",
     "component": "loader", "event": "dataset.loaded",
     "message": "Loaded 50 regions",
     "metadata": {"dataset": "us_states", "region_count": 50}}
"""

from .events import LogEvent
from .structured import StructuredLogger, create_logger

__all__ = [
    'LogEvent',
    'StructuredLogger',
    'create_logger',
]
