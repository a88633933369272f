"""Domain models for authored vibes and the recording surface."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import FrozenSet, Optional

MAX_VIBE_TAGS = 5
RECORDING_COUNTDOWN_SECONDS = 3


class VibeVisibility(str, Enum):
	PUBLIC = "public"
	CIRCLES = "circles"
	PRIVATE = "private"


class VibeStatus(str, Enum):
	DRAFT = "draft"
	PUBLISHED = "published"


@dataclass(frozen=True, slots=True)
class Vibe:
	"""Short authored video post. Immutable once published."""

	id: str
	owner_id: str
	video_uri: str
	authenticity: float
	created_at: datetime
	prompt: Optional[str] = None
	tags: FrozenSet[str] = frozenset()
	visibility: VibeVisibility = VibeVisibility.PUBLIC
	status: VibeStatus = VibeStatus.DRAFT
	published_at: Optional[datetime] = None

	@property
	def is_published(self) -> bool:
		return self.status is VibeStatus.PUBLISHED

	def to_dict(self) -> dict:
		return {
			"owner_id": self.owner_id,
			"video_uri": self.video_uri,
			"prompt": self.prompt,
			"authenticity": self.authenticity,
			"tags": sorted(self.tags),
			"visibility": self.visibility.value,
			"status": self.status.value,
			"created_at": self.created_at.isoformat(),
			"published_at": self.published_at.isoformat() if self.published_at else None,
		}


@dataclass(frozen=True, slots=True)
class RecordingState:
	is_recording: bool = False
	prompt: Optional[str] = None
	countdown: int = RECORDING_COUNTDOWN_SECONDS
	started_at: Optional[datetime] = None
