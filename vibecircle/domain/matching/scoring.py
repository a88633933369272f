"""Compatibility scoring for discovery matches.

Every function here is pure: identical inputs always reproduce identical
scores, so a stored score can be recomputed and compared at any time.
"""

from __future__ import annotations

import math
from typing import AbstractSet, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from vibecircle.domain.matching.models import Insight


class ScoreWeights(BaseModel):
    """Relative weight of each insight dimension. Must sum to 1."""

    model_config = ConfigDict(frozen=True)

    sentiment: float = Field(0.25, ge=0.0, le=1.0)
    values: float = Field(0.25, ge=0.0, le=1.0)
    interests: float = Field(0.25, ge=0.0, le=1.0)
    authenticity: float = Field(0.25, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_total(self) -> "ScoreWeights":
        total = self.sentiment + self.values + self.interests + self.authenticity
        if not math.isclose(total, 1.0, abs_tol=1e-9):
            raise ValueError(f"weights must sum to 1, got {total}")
        return self


def clamp01(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


def interest_overlap(mine: AbstractSet[str], theirs: AbstractSet[str]) -> float:
    """Jaccard similarity of two interest sets, case-insensitive."""
    left = {item.strip().lower() for item in mine if item.strip()}
    right = {item.strip().lower() for item in theirs if item.strip()}
    union = left | right
    if not union:
        return 0.0
    return len(left & right) / len(union)


def authenticity_match(mine: float, theirs: float) -> float:
    return clamp01(1.0 - abs(clamp01(mine) - clamp01(theirs)))


def build_insight(
    *,
    sentiment_match: float,
    values_alignment: float,
    interest_overlap_score: Optional[float],
    authenticity_match_score: Optional[float],
    my_interests: AbstractSet[str],
    their_interests: AbstractSet[str],
    my_authenticity: float,
    their_authenticity: float,
) -> Insight:
    """Fill the insight dimensions the recommender left out from profile data."""
    if interest_overlap_score is None:
        interest_overlap_score = interest_overlap(my_interests, their_interests)
    if authenticity_match_score is None:
        authenticity_match_score = authenticity_match(my_authenticity, their_authenticity)
    return Insight(
        sentiment_match=clamp01(sentiment_match),
        values_alignment=clamp01(values_alignment),
        interest_overlap=clamp01(interest_overlap_score),
        authenticity_match=clamp01(authenticity_match_score),
    )


def compatibility_score(insight: Insight, weights: ScoreWeights) -> float:
    score = (
        weights.sentiment * insight.sentiment_match
        + weights.values * insight.values_alignment
        + weights.interests * insight.interest_overlap
        + weights.authenticity * insight.authenticity_match
    )
    return clamp01(score)
