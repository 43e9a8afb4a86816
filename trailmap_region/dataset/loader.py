"""
Boundary Dataset Loader
=======================

Parses GeoJSON FeatureCollections into immutable BoundaryDatasets.

Design:
- parse_feature_collection(): pure function, document -> dataset
- BoundaryDatasetLoader: resolves dataset names to files and caches
  the parsed result for the process lifetime
- All-or-nothing: any malformed feature fails the whole load

Thread Safety:
- Cache dict guarded by a registry lock
- One lock per dataset name serializes first-time parsing, so concurrent
  first use parses the file exactly once
- Cached datasets are immutable, reads need no further locking
"""

import json
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from trailmap_region.errors import DatasetMalformed, DatasetNotFound
from trailmap_region.geometry.shapes import Part, Region, Ring
from trailmap_region.logging import LogEvent, StructuredLogger, create_logger

SUPPORTED_GEOMETRIES = ("Polygon", "MultiPolygon")
DEFAULT_NAME_PROPERTIES = ("name", "NAME", "id")
DATASET_SUFFIXES = (".json", ".geojson")


@dataclass(frozen=True)
class BoundaryDataset:
    """
    Ordered, immutable collection of regions from one boundary file.

    Attributes:
        name: Dataset name (e.g. "us_states")
        regions: Regions in file order (first-match order for discovery)
        skipped_features: Count of features dropped for unsupported geometry
    """

    name: str
    regions: Tuple[Region, ...]
    skipped_features: int = 0

    def __post_init__(self):
        object.__setattr__(self, 'regions', tuple(self.regions))
        object.__setattr__(
            self, '_index', {region.region_id: region for region in self.regions}
        )

    def __len__(self) -> int:
        return len(self.regions)

    def __iter__(self) -> Iterator[Region]:
        return iter(self.regions)

    def __contains__(self, region_id: str) -> bool:
        return region_id in self._index

    @property
    def region_ids(self) -> Tuple[str, ...]:
        """Identifiers in dataset order."""
        return tuple(region.region_id for region in self.regions)

    def get(self, region_id: str) -> Optional[Region]:
        """Look up a region by identifier."""
        return self._index.get(region_id)


def _parse_ring(dataset_name: str, region_id: str, positions: Any) -> Ring:
    if not isinstance(positions, list):
        raise DatasetMalformed(dataset_name, f"ring of '{region_id}' is not an array")
    for position in positions:
        if not isinstance(position, list) or len(position) < 2:
            raise DatasetMalformed(
                dataset_name,
                f"position {position!r} in '{region_id}' must be [longitude, latitude]"
            )
        if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in position[:2]):
            raise DatasetMalformed(
                dataset_name, f"position {position!r} in '{region_id}' is not numeric"
            )
    try:
        return Ring.from_lon_lat(positions)
    except ValueError as e:
        raise DatasetMalformed(dataset_name, f"invalid ring in '{region_id}': {e}") from e


def _parse_part(dataset_name: str, region_id: str, rings: Any) -> Part:
    # Ring 0 is the outer boundary, rings 1..N-1 are holes
    if not isinstance(rings, list) or len(rings) == 0:
        raise DatasetMalformed(dataset_name, f"polygon of '{region_id}' has no rings")
    parsed = [_parse_ring(dataset_name, region_id, ring) for ring in rings]
    return Part(outer=parsed[0], holes=tuple(parsed[1:]))


def _feature_name(feature: Dict[str, Any], name_properties: Sequence[str]) -> Optional[str]:
    properties = feature.get("properties") or {}
    if not isinstance(properties, dict):
        return None
    for key in name_properties:
        value = properties.get(key)
        if value is not None and str(value).strip():
            return str(value)
    return None


def parse_feature_collection(
    dataset_name: str,
    document: Any,
    name_properties: Sequence[str] = DEFAULT_NAME_PROPERTIES,
    logger: Optional[StructuredLogger] = None,
) -> BoundaryDataset:
    """
    Turn a decoded GeoJSON FeatureCollection into a BoundaryDataset.

    Args:
        dataset_name: Name recorded on the dataset and in errors
        document: Decoded JSON document
        name_properties: Property keys tried in order for the region name
        logger: Optional structured logger for skipped features

    Returns:
        BoundaryDataset with regions in feature order

    Raises:
        DatasetMalformed: On any structural problem, missing name,
            or duplicate name
    """
    if not isinstance(document, dict) or not isinstance(document.get("features"), list):
        raise DatasetMalformed(dataset_name, "document has no 'features' array")

    regions: List[Region] = []
    seen: Dict[str, int] = {}
    skipped = 0

    for index, feature in enumerate(document["features"]):
        if not isinstance(feature, dict):
            raise DatasetMalformed(dataset_name, f"feature {index} is not an object")

        geometry = feature.get("geometry")
        geometry_type = geometry.get("type") if isinstance(geometry, dict) else None
        if geometry_type not in SUPPORTED_GEOMETRIES:
            skipped += 1
            if logger is not None:
                logger.warning(
                    event=LogEvent.DATASET_FEATURE_SKIPPED,
                    message=f"Skipping feature with geometry type {geometry_type!r}",
                    metadata={'dataset': dataset_name, 'feature_index': index}
                )
            continue

        region_id = _feature_name(feature, name_properties)
        if region_id is None:
            raise DatasetMalformed(
                dataset_name,
                f"feature {index} has none of the name properties {list(name_properties)}"
            )
        if region_id in seen:
            raise DatasetMalformed(
                dataset_name,
                f"duplicate region '{region_id}' (features {seen[region_id]} and {index})"
            )
        seen[region_id] = index

        coordinates = geometry.get("coordinates")
        if geometry_type == "Polygon":
            parts = [_parse_part(dataset_name, region_id, coordinates)]
        else:
            if not isinstance(coordinates, list) or len(coordinates) == 0:
                raise DatasetMalformed(
                    dataset_name, f"multipolygon of '{region_id}' has no polygons"
                )
            parts = [_parse_part(dataset_name, region_id, polygon) for polygon in coordinates]

        regions.append(Region(region_id=region_id, parts=tuple(parts)))

    return BoundaryDataset(name=dataset_name, regions=tuple(regions), skipped_features=skipped)


class BoundaryDatasetLoader:
    """
    Resolves dataset names to boundary files and caches parsed datasets.

    Usage:
        loader = BoundaryDatasetLoader(datasets_dir=Path("data/boundaries"))
        dataset = loader.load("us_states")   # parses once
        dataset = loader.load("us_states")   # cached

    Thread Safety:
        load() may be called from any thread. First use of a name parses
        under that name's lock; later calls return the cached instance.
    """

    def __init__(
        self,
        datasets_dir: Path | str = Path("./data/boundaries"),
        name_properties: Sequence[str] = DEFAULT_NAME_PROPERTIES,
        logger: Optional[StructuredLogger] = None,
    ):
        """
        Args:
            datasets_dir: Directory containing <name>.json boundary files
            name_properties: Property keys tried in order for region names
            logger: Structured logger (default: component "loader")
        """
        self.datasets_dir = Path(datasets_dir)
        self.name_properties = tuple(name_properties)
        self.logger = logger or create_logger("loader")

        self._cache: Dict[str, BoundaryDataset] = {}
        self._name_locks: Dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    def resolve_path(self, dataset_name: str) -> Path:
        """
        Find the boundary file for a dataset name.

        Raises:
            DatasetNotFound: If no candidate file exists
        """
        if not dataset_name or Path(dataset_name).name != dataset_name:
            raise DatasetNotFound(dataset_name)

        candidates = [self.datasets_dir / f"{dataset_name}{suffix}" for suffix in DATASET_SUFFIXES]
        for candidate in candidates:
            if candidate.is_file():
                return candidate
        raise DatasetNotFound(dataset_name, [str(c) for c in candidates])

    def _lock_for(self, dataset_name: str) -> threading.Lock:
        with self._lock:
            lock = self._name_locks.get(dataset_name)
            if lock is None:
                lock = threading.Lock()
                self._name_locks[dataset_name] = lock
            return lock

    def load(self, dataset_name: str) -> BoundaryDataset:
        """
        Load (or fetch from cache) the named boundary dataset.

        Args:
            dataset_name: Dataset name, e.g. "us_states"

        Returns:
            Immutable BoundaryDataset

        Raises:
            DatasetNotFound: If the boundary file is absent
            DatasetMalformed: If the file cannot be parsed into regions
        """
        cached = self._cache.get(dataset_name)
        if cached is not None:
            self.logger.debug(
                event=LogEvent.DATASET_CACHE_HIT,
                message="Serving cached dataset",
                metadata={'dataset': dataset_name}
            )
            return cached

        with self._lock_for(dataset_name):
            # Another thread may have finished parsing while we waited
            cached = self._cache.get(dataset_name)
            if cached is not None:
                return cached

            try:
                dataset = self._parse_file(dataset_name)
            except (DatasetNotFound, DatasetMalformed) as e:
                self.logger.error(
                    event=LogEvent.DATASET_ERROR,
                    message="Failed to load boundary dataset",
                    metadata={'dataset': dataset_name},
                    exc_info=e
                )
                raise

            with self._lock:
                self._cache[dataset_name] = dataset

        self.logger.info(
            event=LogEvent.DATASET_LOADED,
            message=f"Loaded {len(dataset)} regions",
            metadata={
                'dataset': dataset_name,
                'region_count': len(dataset),
                'skipped_features': dataset.skipped_features
            }
        )
        return dataset

    def _parse_file(self, dataset_name: str) -> BoundaryDataset:
        path = self.resolve_path(dataset_name)
        try:
            with open(path, encoding="utf-8") as f:
                document = json.load(f)
        except json.JSONDecodeError as e:
            raise DatasetMalformed(dataset_name, f"invalid JSON: {e}") from e
        except UnicodeDecodeError as e:
            raise DatasetMalformed(dataset_name, f"invalid encoding: {e}") from e

        return parse_feature_collection(
            dataset_name, document, self.name_properties, logger=self.logger
        )

    def is_cached(self, dataset_name: str) -> bool:
        """True if the dataset has already been parsed."""
        with self._lock:
            return dataset_name in self._cache

    def cached_names(self) -> List[str]:
        """Names of all cached datasets."""
        with self._lock:
            return list(self._cache)


_default_loader: Optional[BoundaryDatasetLoader] = None
_default_loader_lock = threading.Lock()


def get_default_loader() -> BoundaryDatasetLoader:
    """Process-wide loader rooted at ./data/boundaries."""
    global _default_loader
    with _default_loader_lock:
        if _default_loader is None:
            _default_loader = BoundaryDatasetLoader()
        return _default_loader


def load(dataset_name: str) -> BoundaryDataset:
    """Load a dataset through the process-wide loader."""
    return get_default_loader().load(dataset_name)
