"""Milestone evaluator."""

from __future__ import annotations

from datetime import datetime
from typing import AbstractSet, Iterable, List

from vibecircle.domain.profile.models import MILESTONE_RULES, Milestone, MilestoneRule, ProfileStats


def evaluate(
    stats: ProfileStats,
    unlocked: AbstractSet[str],
    at: datetime,
    rules: Iterable[MilestoneRule] = MILESTONE_RULES,
) -> List[Milestone]:
    """Return milestones newly met by ``stats``.

    Pure: rules already in ``unlocked`` are skipped, so re-evaluating after a
    threshold was reached yields nothing new.
    """
    return [rule.unlock(at) for rule in rules if rule.id not in unlocked and rule.is_met(stats)]
