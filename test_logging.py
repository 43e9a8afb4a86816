"""
Structured logging tests: records are single JSON documents.
"""

import json
import logging

from trailmap_region import Coordinate, RegionDiscoveryAggregator
from trailmap_region.logging import LogEvent, create_logger


def records_for(caplog, logger_name):
    return [json.loads(r.getMessage()) for r in caplog.records if r.name == logger_name]


def test_record_shape(caplog):
    logger = create_logger("test_shape")

    with caplog.at_level(logging.INFO, logger="trailmap.test_shape"):
        logger.info(
            event=LogEvent.DATASET_LOADED,
            message="Loaded 2 regions",
            metadata={'dataset': 'two_squares', 'region_count': 2}
        )

    (entry,) = records_for(caplog, "trailmap.test_shape")
    assert entry['level'] == "INFO"
    assert entry['component'] == "test_shape"
    assert entry['event'] == "dataset.loaded"
    assert entry['metadata'] == {'dataset': 'two_squares', 'region_count': 2}


def test_bound_context_is_merged(caplog):
    logger = create_logger("test_context", service_id="discovery_01")
    scoped = logger.with_context(owner_id="u1")

    with caplog.at_level(logging.INFO, logger="trailmap.test_context"):
        scoped.info(event=LogEvent.DISCOVERY_PUBLISHED, message="Published", metadata={'topic': "t/u1"})
        logger.info(event=LogEvent.SERVICE_STARTED, message="Started")

    published, started = records_for(caplog, "trailmap.test_context")
    assert published['metadata'] == {'service_id': "discovery_01", 'owner_id': "u1", 'topic': "t/u1"}
    assert started['metadata'] == {'service_id': "discovery_01"}


def test_debug_is_filtered_at_info(caplog):
    logger = create_logger("test_level")

    with caplog.at_level(logging.INFO, logger="trailmap.test_level"):
        logger.debug(event=LogEvent.MASK_BUILT, message="hidden")

    assert records_for(caplog, "trailmap.test_level") == []


def test_rejected_coordinate_is_logged(two_squares, caplog):
    aggregator = RegionDiscoveryAggregator(logger=create_logger("test_rejected"))

    with caplog.at_level(logging.INFO, logger="trailmap.test_rejected"):
        aggregator.discover([Coordinate(latitude=91.0, longitude=5.0)], two_squares)

    events = [entry['event'] for entry in records_for(caplog, "trailmap.test_rejected")]
    assert events == ["discovery.coordinate_rejected", "discovery.completed"]
