from __future__ import annotations

from typing import FrozenSet, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class MatchPreferencesPatch(BaseModel):
	model_config = ConfigDict(extra="forbid")

	distance_km: Optional[int] = Field(default=None, ge=1, le=500)
	age_brackets: Optional[Tuple[str, ...]] = None
	interests: Optional[FrozenSet[str]] = None
	moods: Optional[FrozenSet[str]] = None
