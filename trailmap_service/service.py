"""
Discovery Service - recomputes an owner's discovered regions per batch.

Architecture:
- CoordinateSubscriber delivers CoordinateBatchMessages (MQTT thread)
- One DiscoveryPipeline per dataset, all sharing one loader and cache
- DiscoveryPublisher publishes a DiscoveryMessage on the owner's topic

Each batch is the owner's complete coordinate list, so discovery is
recomputed from scratch and the previous result is replaced.

Threading Model:
- paho-mqtt network thread (subscriber callback, calls handle_batch)
- Main thread (start / wait / stop)
"""

import threading
from typing import Dict, Optional

from trailmap_mqtt import CoordinateBatchMessage, DiscoveryMessage
from trailmap_region.analytics.progress import evaluate_milestones
from trailmap_region.dataset.loader import BoundaryDatasetLoader
from trailmap_region.errors import DatasetMalformed, DatasetNotFound
from trailmap_region.logging import LogEvent, StructuredLogger, create_logger
from trailmap_region.pipeline import DiscoveryPipeline, DiscoveryPipelineBuilder
from trailmap_service.config import ServiceConfig


class DiscoveryService:
    """
    Turns coordinate batches into published discovery messages.

    Thread Safety:
    - _pipelines and _latest are guarded by _lock
    - Datasets are cached by the shared loader

    Usage:
        config = ServiceConfig.from_yaml("config/service.yaml")
        service = DiscoveryService(config, publisher=publisher, subscriber=subscriber)
        service.start()
        service.wait()   # Blocks until stop()
    """

    def __init__(
        self,
        config: ServiceConfig,
        publisher,  # DiscoveryPublisher
        subscriber=None,  # CoordinateSubscriber
        loader: Optional[BoundaryDatasetLoader] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        """
        Args:
            config: Service configuration
            publisher: Publisher for discovery messages
            subscriber: Subscriber delivering coordinate batches; its
                on_batch callback is pointed at handle_batch
            loader: Shared dataset loader (default: built from config)
            logger: Structured logger (default: component "service",
                bound to the service_id)
        """
        self.config = config
        self.publisher = publisher
        self.subscriber = subscriber
        self.logger = logger or create_logger("service", service_id=config.service_id)
        self.loader = loader or BoundaryDatasetLoader(
            datasets_dir=config.dataset.datasets_dir,
            name_properties=config.dataset.name_properties,
        )

        if self.subscriber is not None:
            self.subscriber.on_batch = self.handle_batch

        self._pipelines: Dict[str, DiscoveryPipeline] = {}
        self._latest: Dict[str, DiscoveryMessage] = {}
        self._lock = threading.Lock()

        self._running = False
        self._stop_event = threading.Event()

    def pipeline_for(self, dataset_name: str) -> DiscoveryPipeline:
        with self._lock:
            pipeline = self._pipelines.get(dataset_name)
            if pipeline is None:
                pipeline = (
                    DiscoveryPipelineBuilder()
                    .with_loader(self.loader)
                    .with_dataset(dataset_name)
                    .with_extent(self.config.overlay.full_extent())
                    .with_style(self.config.overlay.fill_style())
                    .build()
                )
                self._pipelines[dataset_name] = pipeline
            return pipeline

    def handle_batch(self, batch: CoordinateBatchMessage) -> Optional[DiscoveryMessage]:
        """
        Recompute and publish the discovery for one batch.

        Returns:
            The published message, or None if the batch was dropped
        """
        dataset_name = batch.dataset or self.config.dataset.default_dataset
        pipeline = self.pipeline_for(dataset_name)

        try:
            discovery = pipeline.discover(batch.coordinates)
        except (DatasetNotFound, DatasetMalformed) as e:
            self.logger.error(
                event=LogEvent.DATASET_ERROR,
                message="Dropping batch: dataset unavailable",
                metadata={'owner_id': batch.owner_id, 'dataset': dataset_name},
                exc_info=e
            )
            return None

        earned, _ = evaluate_milestones(discovery, pipeline.config.milestones)
        message = DiscoveryMessage.from_discovery(
            owner_id=batch.owner_id,
            discovery=discovery,
            milestones_earned=[status.milestone.title for status in earned],
        )

        with self._lock:
            self._latest[batch.owner_id] = message

        self.publisher.publish_discovery(message)
        return message

    def latest(self, owner_id: str) -> Optional[DiscoveryMessage]:
        """Most recent discovery computed for an owner."""
        with self._lock:
            return self._latest.get(owner_id)

    def start(self) -> None:
        """
        Connect publisher and subscriber (non-blocking).

        The default dataset is loaded up front so a broken boundary file
        fails at startup instead of on the first batch.

        Raises:
            DatasetNotFound, DatasetMalformed: If the default dataset is unusable
            RuntimeError: If the broker cannot be reached
        """
        if self._running:
            self.logger.warning(
                event=LogEvent.SERVICE_STARTED,
                message="Service already running"
            )
            return

        self.loader.load(self.config.dataset.default_dataset)

        if not self.publisher.connect():
            raise RuntimeError("Failed to connect to MQTT broker (discovery publisher)")
        if self.subscriber is not None:
            if not self.subscriber.connect():
                self.publisher.disconnect()
                raise RuntimeError("Failed to connect to MQTT broker (coordinate subscriber)")
            self.subscriber.start()

        self._stop_event.clear()
        self._running = True
        self.logger.info(
            event=LogEvent.SERVICE_STARTED,
            message="Discovery service started",
            metadata={
                'default_dataset': self.config.dataset.default_dataset,
                'coordinates_topic': self.config.coordinates_topic,
                'discovery_topic': self.config.discovery_topic
            }
        )

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until stop() is called; True if it was."""
        return self._stop_event.wait(timeout=timeout)

    def stop(self) -> None:
        if not self._running:
            return

        if self.subscriber is not None:
            self.subscriber.stop()
        self.publisher.disconnect()

        self._running = False
        self._stop_event.set()
        self.logger.info(
            event=LogEvent.SERVICE_STOPPED,
            message="Discovery service stopped",
            metadata={
                'owners': len(self._latest)
            }
        )

    def is_running(self) -> bool:
        return self._running
