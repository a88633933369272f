"""Profile store: the current user's profile, stats and milestones."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import replace
from datetime import date, timedelta
from typing import Deque, List, Optional

from vibecircle.domain.common.context import SessionContext
from vibecircle.domain.common.errors import EngineError
from vibecircle.domain.common.result import Result
from vibecircle.domain.common.unit_of_work import UnitOfWork
from vibecircle.domain.common.validation import parse
from vibecircle.domain.matching.scoring import clamp01
from vibecircle.domain.profile import milestones as milestone_rules
from vibecircle.domain.profile.models import Milestone, Profile
from vibecircle.domain.profile.schemas import ProfilePatch

logger = logging.getLogger(__name__)


class ProfileStore:
    def __init__(self, ctx: SessionContext, profile: Profile) -> None:
        self.ctx = ctx
        self._seed = profile
        self._profile = profile
        self._ratings: Deque[float] = deque(maxlen=max(1, ctx.config.authenticity_window))
        self._last_share_day: Optional[date] = None

    @property
    def profile(self) -> Profile:
        return self._profile

    def snapshot(self) -> Profile:
        """Immutable view handed to other stores."""
        return self._profile

    def _swap(self, tx: UnitOfWork, updated: Profile) -> None:
        previous = self._profile
        self._profile = updated

        def undo() -> None:
            self._profile = previous

        tx.compensate(undo)

    def _unlock(self, profile: Profile) -> tuple[Profile, List[Milestone]]:
        unlocked = milestone_rules.evaluate(profile.stats, profile.milestone_ids, self.ctx.clock.now())
        if not unlocked:
            return profile, []
        return replace(profile, milestones=profile.milestones + tuple(unlocked)), unlocked

    def apply_stats(self, tx: UnitOfWork, **deltas: int) -> List[Milestone]:
        """Bump counters, then evaluate milestones. Returns the newly unlocked ones."""
        profile = replace(self._profile, stats=self._profile.stats.bump(**deltas))
        profile, unlocked = self._unlock(profile)
        self._swap(tx, profile)
        tx.record(
            "profile",
            profile.id,
            stats=profile.stats,
            milestones=[milestone.to_dict() for milestone in profile.milestones],
        )
        return unlocked

    def apply_vibe_share(self, tx: UnitOfWork, authenticity: float, shared_on: date) -> List[Milestone]:
        """Fold a published vibe into authenticity, streak and share count."""
        previous_ratings = list(self._ratings)
        previous_day = self._last_share_day
        self._ratings.append(clamp01(authenticity))
        score = clamp01(sum(self._ratings) / len(self._ratings))

        stats = self._profile.stats
        if previous_day == shared_on:
            streak = stats.authenticity_streak
        elif previous_day is not None and previous_day + timedelta(days=1) == shared_on:
            streak = stats.authenticity_streak + 1
        else:
            streak = 1
        stats = stats.bump(vibes_shared=1, authenticity_streak=streak - stats.authenticity_streak)
        self._last_share_day = shared_on

        profile, unlocked = self._unlock(replace(self._profile, stats=stats, authenticity_score=score))
        self._swap(tx, profile)

        def undo() -> None:
            self._ratings.clear()
            self._ratings.extend(previous_ratings)
            self._last_share_day = previous_day

        tx.compensate(undo)
        tx.record(
            "profile",
            profile.id,
            authenticity_score=profile.authenticity_score,
            stats=profile.stats,
            milestones=[milestone.to_dict() for milestone in profile.milestones],
        )
        return unlocked

    async def update_profile(self, patch) -> Result[Profile]:
        try:
            parsed = parse(ProfilePatch, patch)
            changes = parsed.model_dump(exclude_unset=True)
            async with UnitOfWork(self.ctx, "update_profile") as tx:
                self._swap(tx, replace(self._profile, **changes))
                tx.record("profile", self._profile.id, **changes)
        except EngineError as exc:
            return Result.failure(exc)
        logger.info("profile updated", extra={"fields": sorted(changes)})
        return Result.success(self._profile)

    def clear(self) -> None:
        self._profile = self._seed
        self._ratings.clear()
        self._last_share_day = None
