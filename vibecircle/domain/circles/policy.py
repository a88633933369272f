"""Guard checks for circle membership."""

from __future__ import annotations

from typing import Optional

from vibecircle.domain.circles.models import MAX_JOINED_CIRCLES, Circle
from vibecircle.domain.common.errors import AlreadyJoined, CapacityExceeded, NotFound


def ensure_capacity(joined_count: int) -> None:
    if joined_count >= MAX_JOINED_CIRCLES:
        raise CapacityExceeded(detail=f"max_joined:{MAX_JOINED_CIRCLES}")


def ensure_can_join(circle: Optional[Circle], circle_id: str, joined_count: int) -> Circle:
    if circle is None:
        raise NotFound(detail=f"circle:{circle_id}")
    if circle.joined:
        raise AlreadyJoined(detail=circle_id)
    ensure_capacity(joined_count)
    return circle


def ensure_member(circle: Optional[Circle], circle_id: str) -> Circle:
    if circle is None or not circle.joined:
        raise NotFound(detail=f"membership:{circle_id}")
    return circle
