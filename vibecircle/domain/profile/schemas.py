"""Editable profile fields."""

from __future__ import annotations

from typing import FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProfilePatch(BaseModel):
    """Shallow patch of user-editable fields.

    Derived fields (authenticity score, stats, milestones) are owned by the
    engine and rejected as unknown keys. Only ``avatar_uri`` may be cleared
    with an explicit null.
    """

    model_config = ConfigDict(extra="forbid")

    display_name: Optional[str] = Field(default=None, min_length=1, max_length=80)
    bio: Optional[str] = Field(default=None, max_length=500)
    interests: Optional[FrozenSet[str]] = None
    values: Optional[FrozenSet[str]] = None
    avatar_uri: Optional[str] = Field(default=None, max_length=2048)

    @field_validator("display_name", "bio", "interests", "values")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("field cannot be cleared")
        return value
