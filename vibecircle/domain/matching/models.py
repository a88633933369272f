"""Domain models for discovery matches."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import FrozenSet, Optional, Tuple

from vibecircle.domain.profile.models import ProfileSummary
from vibecircle.domain.vibes.models import Vibe


class MatchStatus(str, Enum):
	PENDING = "pending"
	CONNECTED = "connected"
	PASSED = "passed"


def _check_unit(name: str, value: Optional[float]) -> None:
	if value is None:
		return
	if not 0.0 <= value <= 1.0:
		raise ValueError(f"{name} must be within [0, 1], got {value}")


@dataclass(frozen=True, slots=True)
class Insight:
	"""Per-dimension compatibility, each in [0, 1]."""

	sentiment_match: float
	values_alignment: float
	interest_overlap: float
	authenticity_match: float

	def __post_init__(self) -> None:
		for name in ("sentiment_match", "values_alignment", "interest_overlap", "authenticity_match"):
			_check_unit(name, getattr(self, name))

	def to_dict(self) -> dict:
		return {
			"sentiment_match": self.sentiment_match,
			"values_alignment": self.values_alignment,
			"interest_overlap": self.interest_overlap,
			"authenticity_match": self.authenticity_match,
		}


@dataclass(frozen=True, slots=True)
class MatchCandidate:
	"""Recommendation as handed over by the backend before scoring.

	Interest overlap and authenticity match may be omitted; they are then
	derived from the current profile.
	"""

	id: str
	user: ProfileSummary
	sentiment_match: float
	values_alignment: float
	vibe: Optional[Vibe] = None
	interest_overlap: Optional[float] = None
	authenticity_match: Optional[float] = None
	circle_ids: FrozenSet[str] = frozenset()

	def __post_init__(self) -> None:
		_check_unit("sentiment_match", self.sentiment_match)
		_check_unit("values_alignment", self.values_alignment)
		_check_unit("interest_overlap", self.interest_overlap)
		_check_unit("authenticity_match", self.authenticity_match)


@dataclass(frozen=True, slots=True)
class Match:
	id: str
	user: ProfileSummary
	insight: Insight
	compatibility_score: float
	admitted_on: date
	seq: int
	vibe: Optional[Vibe] = None
	member_circles: FrozenSet[str] = frozenset()
	shared_circles: FrozenSet[str] = frozenset()
	status: MatchStatus = MatchStatus.PENDING

	@property
	def is_pending(self) -> bool:
		return self.status is MatchStatus.PENDING


@dataclass(frozen=True, slots=True)
class MatchPreferences:
	"""Discovery filters the recommender applies upstream."""

	distance_km: int = 25
	age_brackets: Tuple[str, ...] = ("18-24", "25-34")
	interests: FrozenSet[str] = frozenset()
	moods: FrozenSet[str] = frozenset()

	def to_dict(self) -> dict:
		return {
			"distance_km": self.distance_km,
			"age_brackets": list(self.age_brackets),
			"interests": sorted(self.interests),
			"moods": sorted(self.moods),
		}
