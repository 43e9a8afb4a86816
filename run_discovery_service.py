#!/usr/bin/env python3
"""
Discovery Service - Entry Point
===============================

This script starts the TrailMap discovery service, which:
- Subscribes to coordinate batches (one owner's complete coordinate list)
- Recomputes the regions each batch discovers
- Publishes a DiscoveryMessage on the owner's discovery topic

Usage:
    python run_discovery_service.py --config config/service.yaml

Lifecycle:
    1. Load configuration from YAML
    2. Setup logging (console + file)
    3. Create subscriber and publisher
    4. Create DiscoveryService
    5. Start service (loads default dataset, connects to broker)
    6. Wait for stop signal (Ctrl+C or SIGTERM)
    7. Graceful shutdown

Signals:
    - SIGTERM: Graceful shutdown
    - SIGINT (Ctrl+C): Graceful shutdown
"""

import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

from trailmap_mqtt import CoordinateSubscriber, DiscoveryPublisher
from trailmap_region.errors import RegionError
from trailmap_region.logging import create_logger
from trailmap_service import DiscoveryService, ServiceConfig


def setup_logging(log_file: Optional[Path] = None) -> logging.Logger:
    """
    Route the structured JSON loggers to the console and, optionally, a file.

    Args:
        log_file: Optional path to log file
    """
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            *([logging.FileHandler(log_file)] if log_file else [])
        ]
    )
    return logging.getLogger(__name__)


class DiscoveryApp:
    """
    Application wrapper for DiscoveryService.

    Handles configuration loading, component wiring, signal handling and
    graceful shutdown.
    """

    def __init__(self, config_path: Path, log_file: Optional[Path] = None):
        self.config_path = config_path
        self.logger = setup_logging(log_file)

        self.config: Optional[ServiceConfig] = None
        self.service: Optional[DiscoveryService] = None
        self._shutdown_requested = False

    def setup(self):
        self.logger.info(f"Loading configuration: {self.config_path}")
        self.config = ServiceConfig.from_yaml(self.config_path)
        mqtt = self.config.mqtt_config

        mqtt_logger = create_logger(component="mqtt", service_id=self.config.service_id)

        publisher = DiscoveryPublisher(
            broker_host=mqtt.broker,
            broker_port=mqtt.port,
            topic=self.config.discovery_topic,
            logger=mqtt_logger,
            client_id=f"discovery_publisher_{self.config.service_id}",
            username=mqtt.username,
            password=mqtt.password,
            qos=mqtt.qos,
        )

        # on_batch is rebound by DiscoveryService
        subscriber = CoordinateSubscriber(
            broker_host=mqtt.broker,
            broker_port=mqtt.port,
            topic=self.config.coordinates_topic,
            on_batch=lambda batch: None,
            logger=mqtt_logger,
            client_id=f"coordinate_subscriber_{self.config.service_id}",
            username=mqtt.username,
            password=mqtt.password,
            qos=mqtt.qos,
        )

        self.service = DiscoveryService(
            config=self.config,
            publisher=publisher,
            subscriber=subscriber,
        )
        self.logger.info(f"  - Coordinates topic: {self.config.coordinates_topic}")
        self.logger.info(f"  - Discovery topic: {self.config.discovery_topic}")

    def run(self):
        """Block until shutdown is requested."""
        if not self.service:
            raise RuntimeError("Service not initialized. Call setup() first.")

        signal.signal(signal.SIGTERM, self._signal_handler)
        signal.signal(signal.SIGINT, self._signal_handler)

        self.service.start()
        self.logger.info("Service started. Press Ctrl+C to stop")
        self.service.wait()

    def shutdown(self):
        if self._shutdown_requested:
            return
        self._shutdown_requested = True

        self.logger.info("Shutting down discovery service")
        if self.service:
            self.service.stop()

    def _signal_handler(self, signum, frame):
        self.logger.info(f"Received signal {signal.Signals(signum).name} ({signum})")
        self.shutdown()


def parse_args():
    parser = argparse.ArgumentParser(
        description="TrailMap Discovery Service - coordinate batches in, discovered regions out",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_discovery_service.py --config config/service.yaml
  python run_discovery_service.py --config config/service.yaml --no-log-file
        """
    )
    parser.add_argument('--config', type=Path, required=True, help='Path to service configuration YAML')
    parser.add_argument(
        '--log-file',
        type=Path,
        default=Path('logs/discovery.log'),
        help='Path to log file (default: logs/discovery.log)'
    )
    parser.add_argument('--no-log-file', action='store_true', help='Disable file logging (console only)')
    return parser.parse_args()


def main():
    args = parse_args()

    if not args.config.exists():
        print(f"❌ Error: Configuration file not found: {args.config}", file=sys.stderr)
        sys.exit(1)

    app = DiscoveryApp(
        config_path=args.config,
        log_file=None if args.no_log_file else args.log_file
    )

    try:
        app.setup()
        app.run()
    except (RegionError, ValueError, OSError, RuntimeError) as e:
        print(f"❌ Fatal error: {e}", file=sys.stderr)
        app.shutdown()
        sys.exit(1)


if __name__ == '__main__':
    main()
