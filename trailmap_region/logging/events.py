"""
Structured Log Event Types
==========================

Bounded Context: Observability Event Taxonomy

Typed event names for structured logging.

Event Naming Convention:
    <component>.<category>.<action>

    component: dataset, discovery, mask, mqtt, service, error
    category: loaded, completed, publish
    action: success, failed, skipped

Example Log Query (CloudWatch Insights):
    fields @timestamp, event, message, metadata.dataset
    | filter event = "discovery.completed"
    | stats avg(metadata.discovered) by metadata.dataset
"""

from enum import Enum


class LogEvent(str, Enum):
    """
    Typed log event names for structured logging.

    Categories:
    - dataset.*: Boundary dataset loading and caching
    - discovery.*: Coordinate-to-region aggregation
    - mask.*: Overlay mask construction
    - mqtt.*: MQTT broker interactions
    - service.*: Discovery service lifecycle
    - error.*: Error conditions
    """

    # ========== Dataset Events ==========
    DATASET_LOADED = "dataset.loaded"
    """Boundary file parsed and cached."""

    DATASET_CACHE_HIT = "dataset.cache_hit"
    """Dataset served from the in-process cache."""

    DATASET_FEATURE_SKIPPED = "dataset.feature_skipped"
    """Feature with an unsupported geometry type was skipped."""

    # ========== Discovery Events ==========
    DISCOVERY_COMPLETED = "discovery.completed"
    """Coordinate batch reduced to a discovery set."""

    DISCOVERY_COORDINATE_REJECTED = "discovery.coordinate_rejected"
    """Invalid coordinate treated as matching no region."""

    # ========== Mask Events ==========
    MASK_BUILT = "mask.built"
    """Overlay mask built from a discovery set."""

    # ========== MQTT Events ==========
    MQTT_CONNECTED = "mqtt.connected"
    """MQTT broker connection established."""

    MQTT_DISCONNECTED = "mqtt.disconnected"
    """MQTT broker connection lost."""

    MQTT_PUBLISH_SUCCESS = "mqtt.publish.success"
    """Message successfully published to broker."""

    MQTT_PUBLISH_FAILED = "mqtt.publish.failed"
    """Message publication failed."""

    BATCH_RECEIVED = "mqtt.batch.received"
    """Coordinate batch received by subscriber."""

    BATCH_COORDINATES_SKIPPED = "mqtt.batch.coordinates_skipped"
    """Unparseable coordinate entries dropped from an otherwise valid batch."""

    DISCOVERY_PUBLISHED = "mqtt.discovery.published"
    """Discovery message published for an owner."""

    # ========== Service Events ==========
    SERVICE_STARTED = "service.started"
    """Discovery service started."""

    SERVICE_STOPPED = "service.stopped"
    """Discovery service stopped."""

    # ========== Error Events ==========
    DATASET_ERROR = "error.dataset"
    """Boundary dataset missing or malformed."""

    SERIALIZATION_ERROR = "error.serialization"
    """Failed to serialize message to JSON."""

    DESERIALIZATION_ERROR = "error.deserialization"
    """Failed to deserialize message from JSON."""

    MQTT_CONNECTION_ERROR = "error.mqtt_connection"
    """Failed to connect to MQTT broker."""

    MQTT_PUBLISH_ERROR = "error.mqtt_publish"
    """Error during message publication."""


# Event categories for filtering
DATASET_EVENTS = {
    LogEvent.DATASET_LOADED,
    LogEvent.DATASET_CACHE_HIT,
    LogEvent.DATASET_FEATURE_SKIPPED,
}

DISCOVERY_EVENTS = {
    LogEvent.DISCOVERY_COMPLETED,
    LogEvent.DISCOVERY_COORDINATE_REJECTED,
    LogEvent.MASK_BUILT,
}

MQTT_EVENTS = {
    LogEvent.MQTT_CONNECTED,
    LogEvent.MQTT_DISCONNECTED,
    LogEvent.MQTT_PUBLISH_SUCCESS,
    LogEvent.MQTT_PUBLISH_FAILED,
    LogEvent.BATCH_RECEIVED,
    LogEvent.DISCOVERY_PUBLISHED,
}

ERROR_EVENTS = {
    LogEvent.DATASET_ERROR,
    LogEvent.SERIALIZATION_ERROR,
    LogEvent.DESERIALIZATION_ERROR,
    LogEvent.MQTT_CONNECTION_ERROR,
    LogEvent.MQTT_PUBLISH_ERROR,
}
