"""
Discovery Progress Module
=========================

Progress and milestone snapshots derived from a DiscoverySet.

Design:
- Immutable snapshots (frozen dataclasses)
- Value objects, serializable for the statistics screen
- Milestones evaluated in declaration order
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from trailmap_region.analytics.aggregator import DiscoverySet


@dataclass(frozen=True)
class DiscoveryProgress:
    """
    "Discovered N of M regions" snapshot.

    Attributes:
        discovered: Number of discovered regions
        total: Number of regions in the dataset
    """

    discovered: int
    total: int

    def __post_init__(self):
        if self.discovered < 0 or self.total < 0:
            raise ValueError(f"Counts must be >= 0, got {self.discovered}/{self.total}")
        if self.discovered > self.total:
            raise ValueError(f"discovered ({self.discovered}) exceeds total ({self.total})")

    @classmethod
    def from_discovery(cls, discovery: DiscoverySet) -> "DiscoveryProgress":
        return cls(discovered=len(discovery), total=discovery.total_regions)

    @property
    def fraction(self) -> float:
        """Discovered share in [0, 1]; 0 for an empty dataset."""
        return self.discovered / self.total if self.total else 0.0

    @property
    def percent(self) -> int:
        """Whole-number percentage, rounded down."""
        return int(self.fraction * 100)

    def __str__(self) -> str:
        return f"discovered {self.discovered} of {self.total} regions"


@dataclass(frozen=True)
class Milestone:
    """
    A discovery badge.

    Attributes:
        title: Display title
        description: What the user has to do
        requirement: Regions needed to earn it
    """

    title: str
    description: str
    requirement: int

    def __post_init__(self):
        if self.requirement <= 0:
            raise ValueError(f"Milestone requirement must be > 0, got {self.requirement}")


LOCATION_MILESTONES: Tuple[Milestone, ...] = (
    Milestone("Local Explorer", "Discover 5 locations", 5),
    Milestone("Regional Adventurer", "Discover 10 locations", 10),
    Milestone("Global Voyager", "Discover 50 locations", 50),
)


@dataclass(frozen=True)
class MilestoneStatus:
    """
    A milestone evaluated against a discovered-region count.

    Attributes:
        milestone: The milestone evaluated
        earned: Whether the requirement is met
        percent_complete: 100 when earned, else floor(count / requirement * 100)
        progress: "count/requirement" while unearned, "" once earned
    """

    milestone: Milestone
    earned: bool
    percent_complete: int
    progress: str = ""

    @classmethod
    def evaluate(cls, milestone: Milestone, count: int) -> "MilestoneStatus":
        if count >= milestone.requirement:
            return cls(milestone=milestone, earned=True, percent_complete=100)
        return cls(
            milestone=milestone,
            earned=False,
            percent_complete=int(count / milestone.requirement * 100),
            progress=f"{count}/{milestone.requirement}",
        )

    def __str__(self) -> str:
        if self.earned:
            return f"{self.milestone.title}: earned"
        return f"{self.milestone.title}: {self.progress} ({self.percent_complete}%)"


def evaluate_milestones(
    discovery: DiscoverySet,
    milestones: Sequence[Milestone] = LOCATION_MILESTONES,
) -> Tuple[List[MilestoneStatus], List[MilestoneStatus]]:
    """
    Split milestones into earned and not-yet-earned.

    Args:
        discovery: Discovery set to evaluate
        milestones: Milestones in display order

    Returns:
        (earned, not_earned), each preserving milestone order
    """
    count = len(discovery)
    earned: List[MilestoneStatus] = []
    not_earned: List[MilestoneStatus] = []

    for milestone in milestones:
        status = MilestoneStatus.evaluate(milestone, count)
        (earned if status.earned else not_earned).append(status)

    return earned, not_earned
