"""Request models for circles."""

from __future__ import annotations

from typing import FrozenSet

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vibecircle.domain.circles.models import MAX_CIRCLE_TAGS


class CircleCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(default="", max_length=500)
    category: str = Field(default="general", min_length=1, max_length=40)
    tags: FrozenSet[str] = frozenset()

    @field_validator("tags", mode="before")
    @classmethod
    def normalise_tags(cls, value):
        if value is None:
            return frozenset()
        return frozenset(str(tag).strip().lower() for tag in value if str(tag).strip())

    @field_validator("tags")
    @classmethod
    def check_tag_count(cls, value: FrozenSet[str]) -> FrozenSet[str]:
        if len(value) > MAX_CIRCLE_TAGS:
            raise ValueError(f"at most {MAX_CIRCLE_TAGS} tags")
        return value
