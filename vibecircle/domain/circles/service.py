"""Circle store: joined circles and recommendations."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, FrozenSet, Iterable, List, Optional
from uuid import uuid4

from vibecircle.domain.circles import policy
from vibecircle.domain.circles.models import MAX_JOINED_CIRCLES, Circle
from vibecircle.domain.circles.schemas import CircleCreateRequest
from vibecircle.domain.common.context import SessionContext
from vibecircle.domain.common.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class CircleStore:
    def __init__(self, ctx: SessionContext) -> None:
        self.ctx = ctx
        self._circles: Dict[str, Circle] = {}
        # join order, oldest first
        self._joined: List[str] = []

    def load(self, circles: Iterable[Circle]) -> int:
        """Seed circles known to the backend. Membership already held locally wins.

        Joined circles beyond the cap are kept as recommendations.
        """
        loaded = 0
        for circle in circles:
            if circle.id in self._joined:
                continue
            if circle.joined and len(self._joined) >= MAX_JOINED_CIRCLES:
                logger.warning(
                    "seeded circle over joined cap",
                    extra={"circle_id": circle.id, "cap": MAX_JOINED_CIRCLES},
                )
                circle = replace(circle, joined=False)
            self._circles[circle.id] = circle
            if circle.joined:
                self._joined.append(circle.id)
            loaded += 1
        return loaded

    def get(self, circle_id: str) -> Optional[Circle]:
        return self._circles.get(circle_id)

    def list_joined(self) -> List[Circle]:
        return [self._circles[circle_id] for circle_id in self._joined]

    def list_recommended(self) -> List[Circle]:
        return [circle for circle in self._circles.values() if not circle.joined]

    def joined_ids(self) -> FrozenSet[str]:
        return frozenset(self._joined)

    def _snapshot_undo(self, tx: UnitOfWork, circle_id: str) -> None:
        previous = self._circles.get(circle_id)
        joined = list(self._joined)

        def undo() -> None:
            if previous is None:
                self._circles.pop(circle_id, None)
            else:
                self._circles[circle_id] = previous
            self._joined[:] = joined

        tx.compensate(undo)

    def join(self, tx: UnitOfWork, circle_id: str) -> Circle:
        circle = policy.ensure_can_join(self._circles.get(circle_id), circle_id, len(self._joined))
        self._snapshot_undo(tx, circle_id)
        joined = replace(circle, joined=True, member_count=circle.member_count + 1)
        self._circles[circle_id] = joined
        self._joined.append(circle_id)
        tx.record("circle", circle_id, joined=True, member_count=joined.member_count)
        return joined

    def create(self, tx: UnitOfWork, request: CircleCreateRequest) -> Circle:
        policy.ensure_capacity(len(self._joined))
        circle = Circle(
            id=str(uuid4()),
            name=request.name,
            description=request.description,
            category=request.category,
            tags=request.tags,
            member_count=1,
            joined=True,
            created_by=self.ctx.user_id,
        )
        self._snapshot_undo(tx, circle.id)
        self._circles[circle.id] = circle
        self._joined.append(circle.id)
        tx.record("circle", circle.id, **circle.to_dict())
        return circle

    def leave(self, tx: UnitOfWork, circle_id: str) -> Circle:
        circle = policy.ensure_member(self._circles.get(circle_id), circle_id)
        self._snapshot_undo(tx, circle_id)
        left = replace(circle, joined=False, member_count=max(0, circle.member_count - 1))
        self._circles[circle_id] = left
        self._joined.remove(circle_id)
        tx.record("circle", circle_id, joined=False, member_count=left.member_count)
        return left

    def clear(self) -> None:
        self._circles.clear()
        self._joined.clear()
