"""
trailmap-cli tests: subcommands run in-process through main(argv).
"""

import json
from datetime import date
from pathlib import Path

import cv2
import pytest

from trailmap_cli import cli
from trailmap_region import Coordinate

DATA_DIR = Path(__file__).parent / "data" / "boundaries"
SAMPLE_MEMORIES = Path(__file__).parent / "data" / "samples" / "memories.json"


@pytest.fixture
def coordinates_file(tmp_path):
    path = tmp_path / "coordinates.json"
    path.write_text(json.dumps([
        [39.7392, -104.9903],
        {"latitude": 35.0844, "longitude": -106.6504},
    ]))
    return path


def test_discover_json(coordinates_file, capsys):
    exit_code = cli.main([
        "discover", str(coordinates_file),
        "--dataset", "four_corners",
        "--datasets-dir", str(DATA_DIR),
        "--json",
    ])

    assert exit_code == 0
    output = json.loads(capsys.readouterr().out)
    assert output == {
        "dataset": "four_corners",
        "region_ids": ["Colorado", "New Mexico"],
        "discovered": 2,
        "total": 5,
    }


def test_discover_text_with_sample_memories(capsys):
    """The invalid [91, 0] entry is skipped, not fatal."""
    exit_code = cli.main([
        "discover", str(SAMPLE_MEMORIES),
        "--dataset", "four_corners",
        "--datasets-dir", str(DATA_DIR),
    ])

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "discovered 3 of 5 regions" in out
    assert "  - Utah" in out
    assert "Local Explorer: 3/5 (60%)" in out


def test_discover_unknown_dataset(coordinates_file, tmp_path, capsys):
    exit_code = cli.main([
        "discover", str(coordinates_file),
        "--dataset", "atlantis",
        "--datasets-dir", str(tmp_path),
    ])

    assert exit_code == 1
    assert "atlantis" in capsys.readouterr().err


def test_render_writes_image(coordinates_file, tmp_path):
    output = tmp_path / "out" / "mask.png"

    exit_code = cli.main([
        "render", str(coordinates_file),
        "--dataset", "four_corners",
        "--datasets-dir", str(DATA_DIR),
        "--extent", "-115", "31", "-102", "45",
        "--width", "260", "--height", "280",
        "--outlines", "--pins",
        "--output", str(output),
    ])

    assert exit_code == 0
    image = cv2.imread(str(output))
    assert image is not None
    assert image.shape == (280, 260, 3)


def test_no_command_prints_help(capsys):
    assert cli.main([]) == 1
    assert "trailmap-cli" in capsys.readouterr().out


def test_parse_coordinate_forms():
    assert cli.parse_coordinate([1, 2]) == Coordinate(latitude=1.0, longitude=2.0)
    assert cli.parse_coordinate({"latitude": 1, "longitude": 2}) == Coordinate(1.0, 2.0)

    with pytest.raises(ValueError):
        cli.parse_coordinate([1, 2, 3])
    with pytest.raises(ValueError):
        cli.parse_coordinate({"lat": 1, "lon": 2})
    with pytest.raises(ValueError):
        cli.parse_coordinate(["a", "b"])


def test_load_coordinates_rejects_non_list(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"points": []}))

    with pytest.raises(ValueError):
        cli.load_coordinates(str(path))


def test_build_batch():
    batch = cli.build_batch({
        "owner_id": "u2",
        "dataset": "four_corners",
        "cutoff": date(2024, 5, 1),
        "coordinates": [[44.6, -110.5]],
    })

    assert batch.owner_id == "u2"
    assert batch.cutoff == date(2024, 5, 1)
    assert batch.coordinates == (Coordinate(44.6, -110.5),)

    with pytest.raises(ValueError):
        cli.build_batch({"dataset": "four_corners"})


def test_send_batch_uses_service_topic(monkeypatch, capsys):
    sent = []

    def fake_send(self, topic, batch, qos=1, timeout=10.0):
        sent.append((topic, batch))

    monkeypatch.setattr(cli.MQTTBatchClient, "send_batch", fake_send)

    config_path = Path(__file__).parent / "config" / "commands" / "batch_u1.yaml"
    exit_code = cli.main(["send-batch", str(config_path), "--service-id", "discovery_09"])

    assert exit_code == 0
    topic, payload = sent[0]
    assert topic == "trailmap/discovery_09/coordinates"
    assert payload["owner_id"] == "u1"
    assert len(payload["coordinates"]) == 3
