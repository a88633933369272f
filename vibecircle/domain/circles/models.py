"""Domain models for circles."""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional

MAX_JOINED_CIRCLES = 5
MAX_CIRCLE_TAGS = 5


@dataclass(frozen=True, slots=True)
class Circle:
    """Themed community the user can join."""

    id: str
    name: str
    description: str = ""
    category: str = "general"
    tags: FrozenSet[str] = frozenset()
    member_count: int = 0
    joined: bool = False
    created_by: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "tags": sorted(self.tags),
            "member_count": self.member_count,
            "joined": self.joined,
            "created_by": self.created_by,
        }
