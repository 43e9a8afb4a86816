"""
Region Errors
=============

Failure kinds raised by the region core.

Design:
- One base class (RegionError) so callers can catch the whole family
- Each kind also subclasses the builtin it specializes
  (FileNotFoundError / ValueError), so generic handlers keep working

Propagation:
- DatasetNotFound / DatasetMalformed: raised by the loader for the whole
  load, never alongside a partial dataset
- InvalidCoordinate: raised by the classifier, recovered per coordinate
  by the aggregator
"""


class RegionError(Exception):
    """Base class for region core failures."""
    pass


class DatasetNotFound(RegionError, FileNotFoundError):
    """Raised when the named boundary file does not exist."""

    def __init__(self, dataset_name: str, searched: list[str] | None = None):
        self.dataset_name = dataset_name
        self.searched = searched or []
        detail = f" (searched: {', '.join(self.searched)})" if self.searched else ""
        super().__init__(f"Boundary dataset '{dataset_name}' not found{detail}")


class DatasetMalformed(RegionError, ValueError):
    """Raised when a boundary file cannot be turned into a dataset."""

    def __init__(self, dataset_name: str, reason: str):
        self.dataset_name = dataset_name
        self.reason = reason
        super().__init__(f"Boundary dataset '{dataset_name}' is malformed: {reason}")


class InvalidCoordinate(RegionError, ValueError):
    """Raised for NaN or out-of-range latitude/longitude values."""

    def __init__(self, latitude: float, longitude: float, reason: str):
        self.latitude = latitude
        self.longitude = longitude
        self.reason = reason
        super().__init__(f"Invalid coordinate ({latitude}, {longitude}): {reason}")
