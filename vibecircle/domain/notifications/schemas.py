from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, StrictBool


class NotificationPreferences(BaseModel):
	"""Per-category switch deciding whether events reach the feed."""

	model_config = ConfigDict(frozen=True)

	matches: bool = True
	messages: bool = True
	circles: bool = True
	milestones: bool = True

	def allows(self, category: str) -> bool:
		return bool(getattr(self, category))


class NotificationPreferencesPatch(BaseModel):
	model_config = ConfigDict(extra="forbid")

	matches: Optional[StrictBool] = None
	messages: Optional[StrictBool] = None
	circles: Optional[StrictBool] = None
	milestones: Optional[StrictBool] = None
