"""
TrailMap CLI - Main entry point.

Runs region discovery locally and sends coordinate batches to the
discovery service over MQTT.
"""

import argparse
import json
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import cv2
import yaml

from trailmap_mqtt.schemas import SCHEMA_VERSION, CoordinateBatchMessage, Timestamp
from trailmap_region.analytics.progress import DiscoveryProgress, evaluate_milestones
from trailmap_region.errors import RegionError
from trailmap_region.geometry.shapes import Coordinate
from trailmap_region.pipeline import DEFAULT_DATASET, DiscoveryPipelineBuilder
from trailmap_region.rendering.mask import FullExtent
from trailmap_region.rendering.painter import FrameProjection, MaskPainter

from .mqtt_client import MQTTBatchClient

BACKGROUND_BGR = (235, 225, 200)


def load_yaml_config(config_path: str) -> Dict[str, Any]:
    """
    Load YAML configuration file.

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If YAML is invalid
    """
    path = Path(config_path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(path) as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {config_path}: {e}")

    if not isinstance(config, dict):
        raise ValueError(f"{config_path}: top level must be a mapping")
    return config


def parse_coordinate(entry: Any) -> Coordinate:
    """[latitude, longitude] pair or {"latitude", "longitude"} object."""
    if isinstance(entry, dict):
        try:
            return Coordinate(latitude=float(entry["latitude"]), longitude=float(entry["longitude"]))
        except KeyError as e:
            raise ValueError(f"Coordinate is missing {e}: {entry!r}")
        except (TypeError, ValueError):
            raise ValueError(f"Coordinate values must be numbers: {entry!r}")

    if isinstance(entry, (list, tuple)) and len(entry) == 2:
        try:
            return Coordinate(latitude=float(entry[0]), longitude=float(entry[1]))
        except (TypeError, ValueError):
            raise ValueError(f"Coordinate values must be numbers: {entry!r}")

    raise ValueError(f"Expected [latitude, longitude] or an object, got {entry!r}")


def load_coordinates(path: str) -> List[Coordinate]:
    """
    Read coordinates from a JSON file.

    The file holds either a list of coordinates or an object with a
    "coordinates" list.
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Coordinates file not found: {path}")

    with open(file_path, encoding="utf-8") as f:
        try:
            document = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}")

    if isinstance(document, dict):
        document = document.get("coordinates")
    if not isinstance(document, list):
        raise ValueError(f"{path}: expected a list of coordinates")

    return [parse_coordinate(entry) for entry in document]


def build_batch(config: Dict[str, Any]) -> CoordinateBatchMessage:
    """
    Build a CoordinateBatchMessage from a batch YAML document.

    Example YAML:
        owner_id: "u1"
        dataset: "us_states"
        cutoff: 2024-05-01          # optional
        coordinates:
          - [39.74, -104.99]
          - {latitude: 40.71, longitude: -74.01}
    """
    if "owner_id" not in config:
        raise ValueError("Batch config requires 'owner_id'")

    cutoff = config.get("cutoff")
    if isinstance(cutoff, datetime):
        cutoff = cutoff.date()
    elif isinstance(cutoff, str):
        cutoff = date.fromisoformat(cutoff)
    elif cutoff is not None and not isinstance(cutoff, date):
        raise ValueError(f"cutoff must be a date, got {cutoff!r}")

    return CoordinateBatchMessage(
        schema_version=SCHEMA_VERSION,
        timestamp=Timestamp.now(),
        owner_id=str(config["owner_id"]),
        dataset=str(config.get("dataset", DEFAULT_DATASET)),
        coordinates=[parse_coordinate(c) for c in config.get("coordinates") or []],
        cutoff=cutoff,
    )


def get_target_run_folder(application_name: str) -> Path:
    """./runs/<application_name>/<timestamp>, created on demand."""
    folder = Path("runs") / application_name / datetime.now().strftime("%Y%m%d_%H%M%S")
    folder.mkdir(parents=True, exist_ok=True)
    return folder


def _build_pipeline(args: argparse.Namespace):
    builder = (
        DiscoveryPipelineBuilder()
        .with_datasets_dir(args.datasets_dir)
        .with_dataset(args.dataset)
    )
    if getattr(args, "extent", None):
        builder = builder.with_extent(FullExtent.from_sequence(args.extent))
    return builder.build()


def cmd_discover(args: argparse.Namespace) -> None:
    pipeline = _build_pipeline(args)
    coordinates = load_coordinates(args.coordinates)
    discovery = pipeline.discover(coordinates)

    if args.json:
        print(json.dumps({
            'dataset': discovery.dataset_name,
            'region_ids': sorted(discovery),
            'discovered': len(discovery),
            'total': discovery.total_regions,
        }))
        return

    earned, not_earned = evaluate_milestones(discovery, pipeline.config.milestones)

    print(f"Dataset: {discovery.dataset_name}")
    print(f"You have {DiscoveryProgress.from_discovery(discovery)}")
    for region_id in discovery:
        print(f"  - {region_id}")
    for status in earned + not_earned:
        print(f"  [{'x' if status.earned else ' '}] {status}")


def cmd_render(args: argparse.Namespace) -> Path:
    pipeline = _build_pipeline(args)
    coordinates = load_coordinates(args.coordinates)
    result = pipeline.run(coordinates)

    projection = FrameProjection(pipeline.config.extent, (args.width, args.height))
    painter = MaskPainter(projection)

    frame = projection.blank_frame()
    frame[:] = BACKGROUND_BGR
    if args.outlines:
        frame = painter.draw_region_outlines(frame, pipeline.dataset)
    frame = painter.paint(frame, result.mask)
    if args.pins:
        frame = painter.draw_pins(frame, result.coordinates)

    output = Path(args.output) if args.output else get_target_run_folder("render") / "mask.png"
    output.parent.mkdir(parents=True, exist_ok=True)
    if not cv2.imwrite(str(output), frame):
        raise OSError(f"Failed to write image: {output}")

    print(f"✅ {result.progress}")
    print(f"✅ Mask written to {output}")
    return output


def cmd_send_batch(args: argparse.Namespace) -> None:
    batch = build_batch(load_yaml_config(args.config))
    topic = args.topic or f"trailmap/{args.service_id}/coordinates"

    client = MQTTBatchClient(
        broker=args.broker,
        port=args.port,
        username=args.username,
        password=args.password,
    )
    client.send_batch(topic, batch.to_dict(), qos=1)
    print(f"✅ Batch sent: {batch.coordinate_count} coordinates for {batch.owner_id} → {topic}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trailmap-cli",
        description="TrailMap CLI - Region discovery and overlay masks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Which regions do these coordinates discover?
  trailmap-cli discover data/samples/memories.json --dataset four_corners

  # Paint the fog-of-war overlay to a PNG
  trailmap-cli render data/samples/memories.json --dataset four_corners --output mask.png --pins

  # Send a coordinate batch to the discovery service
  trailmap-cli send-batch config/commands/batch_u1.yaml --service-id discovery_01
"""
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    def add_dataset_arguments(sub: argparse.ArgumentParser) -> None:
        sub.add_argument('coordinates', help='Path to coordinates JSON file')
        sub.add_argument(
            '--dataset',
            default=DEFAULT_DATASET,
            help=f'Boundary dataset name (default: {DEFAULT_DATASET})'
        )
        sub.add_argument(
            '--datasets-dir',
            default='data/boundaries',
            help='Directory with boundary files (default: data/boundaries)'
        )
        sub.add_argument(
            '--extent',
            nargs=4,
            type=float,
            metavar=('MIN_LON', 'MIN_LAT', 'MAX_LON', 'MAX_LAT'),
            help='Overlay extent (default: whole world)'
        )

    # discover command
    discover = subparsers.add_parser('discover', help='Print discovered regions and progress')
    add_dataset_arguments(discover)
    discover.add_argument('--json', action='store_true', help='Print JSON instead of text')

    # render command
    render = subparsers.add_parser('render', help='Render the overlay mask to an image')
    add_dataset_arguments(render)
    render.add_argument('--output', help='Output image (default: runs/render/<timestamp>/mask.png)')
    render.add_argument('--width', type=int, default=1440, help='Image width (default: 1440)')
    render.add_argument('--height', type=int, default=720, help='Image height (default: 720)')
    render.add_argument('--outlines', action='store_true', help='Outline every region')
    render.add_argument('--pins', action='store_true', help='Draw a pin per coordinate')

    # send-batch command
    send_batch = subparsers.add_parser('send-batch', help='Send a coordinate batch from YAML')
    send_batch.add_argument('config', help='Path to batch YAML')
    send_batch.add_argument('--service-id', default='discovery_01', help='Target service ID')
    send_batch.add_argument('--topic', help='Override the coordinates topic')
    send_batch.add_argument('--broker', default='localhost', help='MQTT broker host')
    send_batch.add_argument('--port', type=int, default=1883, help='MQTT broker port')
    send_batch.add_argument('--username', help='MQTT username')
    send_batch.add_argument('--password', help='MQTT password')

    return parser


COMMANDS = {
    'discover': cmd_discover,
    'render': cmd_render,
    'send-batch': cmd_send_batch,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        COMMANDS[args.command](args)
    except (RegionError, ValueError, OSError) as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
