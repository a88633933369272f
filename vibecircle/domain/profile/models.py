"""Domain models for the current user's profile, stats and milestones."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import FrozenSet, Optional, Tuple


class MilestoneLevel(str, Enum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"


class StatName(str, Enum):
    FRIENDSHIPS_FORMED = "friendships_formed"
    CIRCLES_JOINED = "circles_joined"
    AUTHENTICITY_STREAK = "authenticity_streak"
    VIBES_SHARED = "vibes_shared"


@dataclass(frozen=True, slots=True)
class ProfileStats:
    friendships_formed: int = 0
    circles_joined: int = 0
    authenticity_streak: int = 0
    vibes_shared: int = 0

    def value_of(self, stat: StatName) -> int:
        return getattr(self, stat.value)

    def bump(self, **deltas: int) -> "ProfileStats":
        """Apply counter deltas; counters never drop below zero."""
        changes = {}
        for name, delta in deltas.items():
            stat = StatName(name)
            changes[stat.value] = max(0, self.value_of(stat) + delta)
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {stat.value: self.value_of(stat) for stat in StatName}


@dataclass(frozen=True, slots=True)
class Milestone:
    id: str
    title: str
    description: str
    level: MilestoneLevel
    unlocked_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "level": self.level.value,
            "unlocked_at": self.unlocked_at.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class MilestoneRule:
    """Threshold on a single stat that unlocks a milestone."""

    id: str
    title: str
    description: str
    level: MilestoneLevel
    stat: StatName
    threshold: int

    def is_met(self, stats: ProfileStats) -> bool:
        return stats.value_of(self.stat) >= self.threshold

    def unlock(self, at: datetime) -> Milestone:
        return Milestone(
            id=self.id,
            title=self.title,
            description=self.description,
            level=self.level,
            unlocked_at=at,
        )


# Catalog order is unlock order when several thresholds are crossed at once
MILESTONE_RULES: Tuple[MilestoneRule, ...] = (
    MilestoneRule("first-friend", "First Friend", "Formed your first friendship", MilestoneLevel.BRONZE, StatName.FRIENDSHIPS_FORMED, 1),
    MilestoneRule("warm-welcome", "Warm Welcome", "Formed 5 friendships", MilestoneLevel.SILVER, StatName.FRIENDSHIPS_FORMED, 5),
    MilestoneRule("kindred-spirits", "Kindred Spirits", "Formed 25 friendships", MilestoneLevel.GOLD, StatName.FRIENDSHIPS_FORMED, 25),
    MilestoneRule("circle-starter", "Circle Starter", "Joined your first circle", MilestoneLevel.BRONZE, StatName.CIRCLES_JOINED, 1),
    MilestoneRule("community-builder", "Community Builder", "Active in 5 circles", MilestoneLevel.SILVER, StatName.CIRCLES_JOINED, 5),
    MilestoneRule("first-vibe", "First Vibe", "Shared your first vibe", MilestoneLevel.BRONZE, StatName.VIBES_SHARED, 1),
    MilestoneRule("storyteller", "Storyteller", "Shared 10 vibes", MilestoneLevel.SILVER, StatName.VIBES_SHARED, 10),
    MilestoneRule("true-self", "True Self", "Shared vibes 7 days in a row", MilestoneLevel.GOLD, StatName.AUTHENTICITY_STREAK, 7),
    MilestoneRule("radiant", "Radiant", "Shared vibes 30 days in a row", MilestoneLevel.PLATINUM, StatName.AUTHENTICITY_STREAK, 30),
)


@dataclass(frozen=True, slots=True)
class ProfileSummary:
    """Public slice of a profile, as carried by matches."""

    id: str
    username: str
    display_name: str = ""
    interests: FrozenSet[str] = frozenset()
    values: FrozenSet[str] = frozenset()
    authenticity_score: float = 0.0
    avatar_uri: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Profile:
    id: str
    username: str
    display_name: str = ""
    bio: str = ""
    interests: FrozenSet[str] = frozenset()
    values: FrozenSet[str] = frozenset()
    avatar_uri: Optional[str] = None
    authenticity_score: float = 0.0
    stats: ProfileStats = field(default_factory=ProfileStats)
    milestones: Tuple[Milestone, ...] = ()

    @property
    def milestone_ids(self) -> FrozenSet[str]:
        return frozenset(milestone.id for milestone in self.milestones)

    def summary(self) -> ProfileSummary:
        return ProfileSummary(
            id=self.id,
            username=self.username,
            display_name=self.display_name or self.username,
            interests=self.interests,
            values=self.values,
            authenticity_score=self.authenticity_score,
            avatar_uri=self.avatar_uri,
        )
