"""Request models for the vibe draft surface."""

from __future__ import annotations

from typing import FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vibecircle.domain.vibes.models import MAX_VIBE_TAGS, VibeVisibility


def _normalise_tags(value):
	if value is None:
		return value
	tags = frozenset(str(tag).strip().lower() for tag in value if str(tag).strip())
	if len(tags) > MAX_VIBE_TAGS:
		raise ValueError(f"at most {MAX_VIBE_TAGS} tags")
	return tags


class VibeDraftRequest(BaseModel):
	model_config = ConfigDict(extra="forbid")

	video_uri: str = Field(..., min_length=1, max_length=2048)
	authenticity: float = Field(..., ge=0.0, le=1.0)
	tags: FrozenSet[str] = frozenset()
	visibility: VibeVisibility = VibeVisibility.PUBLIC
	prompt: Optional[str] = Field(default=None, max_length=280)

	@field_validator("tags", mode="before")
	@classmethod
	def check_tags(cls, value):
		return _normalise_tags(value)


class VibeDraftPatch(BaseModel):
	model_config = ConfigDict(extra="forbid")

	tags: Optional[FrozenSet[str]] = None
	visibility: Optional[VibeVisibility] = None

	@field_validator("tags", mode="before")
	@classmethod
	def check_tags(cls, value):
		return _normalise_tags(value)
