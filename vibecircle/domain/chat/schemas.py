from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class HangoutCreateRequest(BaseModel):
	model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

	title: str = Field(..., min_length=1, max_length=100)
	scheduled_for: datetime
	is_virtual: bool = False
	location: str = Field(default="", max_length=200)
	notes: Optional[str] = Field(default=None, max_length=500)

	@field_validator("scheduled_for")
	@classmethod
	def require_timezone(cls, value: datetime) -> datetime:
		if value.tzinfo is None or value.utcoffset() is None:
			raise ValueError("scheduled_for must be timezone-aware")
		return value

	@model_validator(mode="after")
	def require_location(self) -> "HangoutCreateRequest":
		if not self.is_virtual and not self.location:
			raise ValueError("in-person hangouts need a location")
		return self
