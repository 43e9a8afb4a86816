"""
Discovery pipeline tests: memory selection and the three screen entry points.
"""

from datetime import date, datetime, timezone

import pytest

from trailmap_region import (
    Coordinate,
    DatasetNotFound,
    DiscoveryPipelineBuilder,
    FullExtent,
    Memory,
    MemoryFilter,
    Milestone,
)


def at(x, y):
    return Coordinate(latitude=y, longitude=x)


@pytest.fixture
def memories():
    return [
        Memory("m1", "u1", at(5, 5), datetime(2024, 4, 30, 9, 0)),
        Memory("m2", "u1", at(25, 5), datetime(2024, 5, 1, 23, 59, 59)),
        Memory("m3", "u1", at(5, 6), datetime(2024, 5, 2, 0, 0)),
        Memory("m4", "u1", None, datetime(2024, 4, 1)),
        Memory("m5", "u1", at(25, 6), None),
        Memory("m6", "u2", at(25, 5), datetime(2024, 1, 1)),
    ]


@pytest.fixture
def pipeline(two_squares, loader):
    return (
        DiscoveryPipelineBuilder()
        .with_loader(loader)
        .with_dataset("two_squares")
        .with_extent(FullExtent(0.0, 0.0, 40.0, 10.0))
        .build()
    )


def test_filter_by_owner(memories):
    coordinates = MemoryFilter.coordinates(memories, "u1")

    assert coordinates == [at(5, 5), at(25, 5), at(5, 6), at(25, 6)]


def test_cutoff_includes_the_whole_day(memories):
    coordinates = MemoryFilter.coordinates(memories, "u1", cutoff=date(2024, 5, 1))

    assert coordinates == [at(5, 5), at(25, 5)]


def test_cutoff_with_aware_datetimes():
    memories = [
        Memory("a", "u1", at(1, 1), datetime(2024, 5, 1, 18, 0, tzinfo=timezone.utc)),
        Memory("b", "u1", at(2, 2), datetime(2024, 5, 2, 1, 0, tzinfo=timezone.utc)),
    ]

    coordinates = MemoryFilter.coordinates(memories, "u1", cutoff=date(2024, 5, 1))

    assert coordinates == [at(1, 1)]


def test_personal_map(pipeline, memories):
    result = pipeline.personal_map(memories, owner_id="u1")

    assert result.discovery.region_ids == {"A", "B"}
    assert result.mask.is_empty
    assert len(result.coordinates) == 4
    assert str(result.progress) == "discovered 2 of 2 regions"


def test_shared_map_respects_cutoff(pipeline):
    memories = [
        Memory("m1", "u2", at(5, 5), datetime(2024, 5, 1, 12, 0)),
        Memory("m2", "u2", at(25, 5), datetime(2024, 5, 2, 12, 0)),
    ]

    result = pipeline.shared_map(memories, owner_id="u2", cutoff=date(2024, 5, 1))

    assert result.discovery.region_ids == {"A"}
    assert result.mask.revealed == {"A"}
    assert result.mask.hole_count == 1


def test_shared_map_of_other_owner_is_empty(pipeline, memories):
    result = pipeline.shared_map(memories, owner_id="nobody", cutoff=date(2030, 1, 1))

    assert result.discovery.is_empty
    assert result.mask.is_full


def test_badge_progress(two_squares, loader, memories):
    pipeline = (
        DiscoveryPipelineBuilder()
        .with_loader(loader)
        .with_dataset("two_squares")
        .with_milestones([Milestone("One", "Discover 1", 1), Milestone("Three", "Discover 3", 3)])
        .build()
    )

    report = pipeline.badge_progress(memories, owner_id="u2")

    assert report.discovery.region_ids == {"B"}
    assert [s.milestone.title for s in report.earned] == ["One"]
    assert [s.progress for s in report.not_earned] == ["1/3"]
    assert report.progress.discovered == 1


def test_run_and_discover_share_the_dataset(pipeline):
    assert pipeline.dataset is pipeline.dataset
    assert pipeline.discover([at(25, 5)]) == pipeline.run([at(25, 5)]).discovery


def test_run_accepts_a_generator(pipeline):
    result = pipeline.run(at(x, 5) for x in (5, 25))

    assert result.coordinates == (at(5, 5), at(25, 5))
    assert result.discovery.region_ids == {"A", "B"}


def test_builder_rejects_loader_and_directory(loader, tmp_path):
    builder = DiscoveryPipelineBuilder().with_loader(loader).with_datasets_dir(tmp_path)

    with pytest.raises(ValueError):
        builder.build()


def test_builder_requires_dataset_name():
    with pytest.raises(ValueError):
        DiscoveryPipelineBuilder().with_dataset("").build()


def test_missing_dataset_surfaces_on_use(tmp_path):
    pipeline = DiscoveryPipelineBuilder().with_datasets_dir(tmp_path).with_dataset("atlantis").build()

    with pytest.raises(DatasetNotFound):
        pipeline.discover([at(0, 0)])
