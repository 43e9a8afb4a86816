"""
MQTT Messages and Discovery Service (Without Real Broker)
=========================================================

Exercises the wire schemas, the subscriber's payload handling and the
service's batch flow by calling the handlers directly; no broker needed.
"""

import json
from datetime import date
from pathlib import Path

import pytest

from trailmap_mqtt import (
    CoordinateBatchMessage,
    CoordinateSubscriber,
    DiscoveryMessage,
    DiscoveryPublisher,
    Timestamp,
)
from trailmap_region import Coordinate, DiscoverySet
from trailmap_region.logging import create_logger
from trailmap_service import DatasetConfig, MQTTConfig, OverlayConfig, ServiceConfig
from trailmap_service.service import DiscoveryService


def at(x, y):
    return Coordinate(latitude=y, longitude=x)


def batch_payload(**overrides):
    payload = {
        "schema_version": "1.0",
        "timestamp": "2024-05-01T12:00:00+00:00",
        "owner_id": "u1",
        "dataset": "two_squares",
        "coordinates": [
            {"latitude": 5.0, "longitude": 5.0},
            {"latitude": 5.0, "longitude": 25.0},
        ],
        "cutoff": None,
    }
    payload.update(overrides)
    return payload


class RecordingPublisher:
    """Stands in for DiscoveryPublisher; keeps what would be published."""

    def __init__(self, connect_ok=True):
        self.connect_ok = connect_ok
        self.published = []
        self.disconnected = False

    def connect(self, timeout=10.0):
        return self.connect_ok

    def disconnect(self):
        self.disconnected = True

    def publish_discovery(self, message):
        self.published.append(message)
        return True


@pytest.fixture
def logger():
    return create_logger("test")


@pytest.fixture
def service(two_squares, tmp_path):
    config = ServiceConfig(
        service_id="test_01",
        dataset=DatasetConfig(datasets_dir=tmp_path, default_dataset="two_squares"),
    )
    return DiscoveryService(config, publisher=RecordingPublisher())


# ========== Schemas ==========

def test_batch_serialization():
    """Batch survives a trip through JSON text."""
    batch = CoordinateBatchMessage(
        schema_version="1.0",
        timestamp=Timestamp.now(),
        owner_id="u2",
        dataset="us_states",
        coordinates=[Coordinate(39.74, -104.99)],
        cutoff=date(2024, 5, 1),
    )

    data = json.loads(json.dumps(batch.to_dict()))
    assert data["cutoff"] == "2024-05-01"

    restored = CoordinateBatchMessage.from_dict(data)
    assert restored == batch
    assert restored.coordinate_count == 1


def test_batch_keeps_out_of_range_coordinates():
    """Range checks belong to the aggregator, not the wire format."""
    batch = CoordinateBatchMessage.from_dict(
        batch_payload(coordinates=[{"latitude": 91.0, "longitude": 0.0}])
    )

    assert batch.coordinates == (Coordinate(91.0, 0.0),)


@pytest.mark.parametrize("overrides", [
    {"owner_id": ""},
    {"coordinates": {"latitude": 1, "longitude": 2}},
    {"cutoff": "first of May"},
])
def test_invalid_batches(overrides):
    with pytest.raises(ValueError):
        CoordinateBatchMessage.from_dict(batch_payload(**overrides))


def test_bad_coordinate_entries_are_dropped_one_by_one():
    batch = CoordinateBatchMessage.from_dict(batch_payload(coordinates=[
        {"latitude": 5.0, "longitude": 5.0},
        {"latitude": None, "longitude": None},
        {"latitude": 1},
        {"latitude": "north", "longitude": 2},
        "5,5",
        {"latitude": "5.0", "longitude": "25.0"},
    ]))

    assert batch.coordinates == (at(5, 5), at(25, 5))
    assert batch.skipped_coordinates == 4
    assert batch.to_dict()["coordinates"] == [
        {"latitude": 5.0, "longitude": 5.0},
        {"latitude": 5.0, "longitude": 25.0},
    ]


def test_batch_requires_fields():
    payload = batch_payload()
    del payload["dataset"]

    with pytest.raises(ValueError, match="dataset"):
        CoordinateBatchMessage.from_dict(payload)


def test_discovery_message_from_discovery():
    discovery = DiscoverySet("us_states", frozenset({"Utah", "Colorado"}), total_regions=50)

    message = DiscoveryMessage.from_discovery("u1", discovery, milestones_earned=["Local Explorer"])

    assert message.region_ids == ("Colorado", "Utah")
    assert message.discovered == 2
    assert message.to_discovery() == discovery

    data = message.to_dict()
    assert data["discovered"] == 2
    assert data["total"] == 50
    assert DiscoveryMessage.from_dict(json.loads(json.dumps(data))) == message


def test_discovery_message_validation():
    data = DiscoveryMessage.from_discovery(
        "u1", DiscoverySet("d", frozenset({"A"}), total_regions=2)
    ).to_dict()

    with pytest.raises(ValueError):
        DiscoveryMessage.from_dict({**data, "discovered": 5})
    with pytest.raises(ValueError):
        DiscoveryMessage.from_dict({**data, "total": 0})
    with pytest.raises(ValueError):
        DiscoveryMessage.from_dict({k: v for k, v in data.items() if k != "owner_id"})


def test_timestamp():
    ts = Timestamp.now()

    assert ts.to_datetime().tzinfo is not None
    with pytest.raises(ValueError):
        Timestamp("yesterday").to_datetime()


# ========== Publisher / Subscriber ==========

def test_discovery_publisher_topic(logger):
    publisher = DiscoveryPublisher(
        broker_host="localhost",
        topic="trailmap/discovery_01/discovery/{owner_id}",
        logger=logger,
    )

    assert publisher.topic_for("u1") == "trailmap/discovery_01/discovery/u1"
    assert not publisher.is_connected()


def test_publish_without_connection_fails(logger):
    publisher = DiscoveryPublisher(broker_host="localhost", topic="t/{owner_id}", logger=logger)
    message = DiscoveryMessage.from_discovery("u1", DiscoverySet("d"))

    assert publisher.publish_discovery(message) is False
    assert publisher.get_stats()["message_count"] == 0


def test_publisher_rejects_bad_qos(logger):
    with pytest.raises(ValueError):
        DiscoveryPublisher(broker_host="localhost", topic="t", logger=logger, qos=3)


def test_subscriber_dispatches_valid_batches(logger):
    received = []
    subscriber = CoordinateSubscriber(
        broker_host="localhost",
        topic="trailmap/test_01/coordinates",
        on_batch=received.append,
        logger=logger,
    )

    batch = subscriber.handle_payload(
        "trailmap/test_01/coordinates",
        json.dumps(batch_payload()).encode("utf-8"),
    )

    assert batch is not None
    assert received == [batch]
    assert batch.coordinates == (at(5, 5), at(25, 5))
    assert subscriber.get_stats()["batches_received"] == 1


def test_subscriber_keeps_batch_with_bad_entries(logger):
    received = []
    subscriber = CoordinateSubscriber(
        broker_host="localhost",
        topic="coordinates",
        on_batch=received.append,
        logger=logger,
    )
    payload = batch_payload(coordinates=[
        {"latitude": 5.0, "longitude": 5.0},
        {"latitude": None, "longitude": None},
    ])

    batch = subscriber.handle_payload("coordinates", json.dumps(payload).encode("utf-8"))

    assert received == [batch]
    assert batch.coordinates == (at(5, 5),)
    stats = subscriber.get_stats()
    assert stats["batches_rejected"] == 0
    assert stats["coordinates_skipped"] == 1


@pytest.mark.parametrize("payload", [
    b"\xff\xfe not utf-8",
    b"{not json",
    b"[1, 2, 3]",
    json.dumps(batch_payload(owner_id="")).encode("utf-8"),
])
def test_subscriber_drops_bad_payloads(logger, payload):
    received = []
    subscriber = CoordinateSubscriber(
        broker_host="localhost",
        topic="coordinates",
        on_batch=received.append,
        logger=logger,
    )

    assert subscriber.handle_payload("coordinates", payload) is None
    assert received == []
    assert subscriber.get_stats()["batches_rejected"] == 1


# ========== Service ==========

def test_service_publishes_discovery(service):
    batch = CoordinateBatchMessage.from_dict(batch_payload())

    message = service.handle_batch(batch)

    assert message.region_ids == ("A", "B")
    assert message.total == 2
    assert service.publisher.published == [message]
    assert service.latest("u1") is message


def test_service_replaces_previous_discovery(service):
    service.handle_batch(CoordinateBatchMessage.from_dict(batch_payload()))
    smaller = service.handle_batch(CoordinateBatchMessage.from_dict(
        batch_payload(coordinates=[{"latitude": 5.0, "longitude": 25.0}])
    ))

    assert smaller.region_ids == ("B",)
    assert service.latest("u1").region_ids == ("B",)


def test_service_skips_invalid_coordinates(service):
    batch = CoordinateBatchMessage.from_dict(batch_payload(coordinates=[
        {"latitude": 95.0, "longitude": 5.0},
        {"latitude": 5.0, "longitude": 5.0},
    ]))

    assert service.handle_batch(batch).region_ids == ("A",)


def test_service_discovers_despite_unparseable_entries(service):
    batch = CoordinateBatchMessage.from_dict(batch_payload(coordinates=[
        {"latitude": 5.0, "longitude": 5.0},
        {"latitude": None, "longitude": None},
    ]))

    assert service.handle_batch(batch).region_ids == ("A",)


def test_service_drops_batch_for_missing_dataset(service):
    batch = CoordinateBatchMessage.from_dict(batch_payload(dataset="atlantis"))

    assert service.handle_batch(batch) is None
    assert service.publisher.published == []


def test_service_subscriber_wiring(two_squares, tmp_path, logger):
    subscriber = CoordinateSubscriber(
        broker_host="localhost",
        topic="coordinates",
        on_batch=lambda batch: None,
        logger=logger,
    )
    config = ServiceConfig(
        service_id="test_01",
        dataset=DatasetConfig(datasets_dir=tmp_path, default_dataset="two_squares"),
    )
    service = DiscoveryService(config, publisher=RecordingPublisher(), subscriber=subscriber)

    subscriber.handle_payload("coordinates", json.dumps(batch_payload()).encode("utf-8"))

    assert service.latest("u1").region_ids == ("A", "B")


def test_service_start_fails_without_broker(service):
    service.publisher.connect_ok = False

    with pytest.raises(RuntimeError):
        service.start()
    assert not service.is_running()


def test_service_start_and_stop(service):
    service.start()
    assert service.is_running()

    service.stop()
    assert not service.is_running()
    assert service.publisher.disconnected
    assert service.wait(timeout=0.1)


# ========== Configuration ==========

def test_config_topics(tmp_path):
    config = ServiceConfig(
        service_id="discovery_07",
        dataset=DatasetConfig(datasets_dir=tmp_path),
    )

    assert config.coordinates_topic == "trailmap/discovery_07/coordinates"
    assert config.discovery_topic == "trailmap/discovery_07/discovery/{owner_id}"


def test_config_from_yaml(tmp_path):
    (tmp_path / "boundaries").mkdir()
    config_path = tmp_path / "config" / "service.yaml"
    config_path.parent.mkdir()
    config_path.write_text(
        'service_id: "discovery_02"\n'
        'dataset:\n'
        '  datasets_dir: "../boundaries"\n'
        '  default_dataset: "four_corners"\n'
        '  name_properties: ["name", "postal"]\n'
        'overlay:\n'
        '  extent: [-115, 31, -102, 45]\n'
        '  fill_opacity: 0.5\n'
        'mqtt_config:\n'
        '  broker: "mqtt.local"\n'
        '  qos: 0\n'
    )

    config = ServiceConfig.from_yaml(config_path)

    assert config.service_id == "discovery_02"
    assert config.dataset.datasets_dir.resolve() == (tmp_path / "boundaries").resolve()
    assert config.dataset.name_properties == ("name", "postal")
    assert config.overlay.full_extent().width == 13.0
    assert config.overlay.fill_style().opacity == 0.5
    assert config.mqtt_config.broker == "mqtt.local"
    assert config.mqtt_config.qos == 0


def test_config_validation(tmp_path):
    with pytest.raises(FileNotFoundError):
        DatasetConfig(datasets_dir=tmp_path / "missing")
    with pytest.raises(ValueError):
        OverlayConfig(extent=(0, 0, 0, 0))
    with pytest.raises(ValueError):
        OverlayConfig(fill_opacity=2.0)
    with pytest.raises(ValueError):
        MQTTConfig(port=0)
    with pytest.raises(ValueError):
        MQTTConfig(qos=5)
    with pytest.raises(ValueError):
        ServiceConfig(service_id="", dataset=DatasetConfig(datasets_dir=tmp_path))


def test_shipped_service_config():
    config = ServiceConfig.from_yaml(Path(__file__).parent / "config" / "service.yaml")

    assert config.service_id == "discovery_01"
    assert config.dataset.default_dataset == "four_corners"
    assert (config.dataset.datasets_dir / "four_corners.json").is_file()
    assert config.coordinates_topic == "trailmap/discovery_01/coordinates"
