"""Engine tunables resolved from settings."""

from __future__ import annotations

from dataclasses import dataclass, field

from vibecircle.domain.matching.scoring import ScoreWeights
from vibecircle.settings import Settings


@dataclass(frozen=True, slots=True)
class EngineConfig:
	daily_match_quota: int = 5
	weights: ScoreWeights = field(default_factory=ScoreWeights)
	timezone: str = "UTC"
	authenticity_window: int = 10

	@classmethod
	def from_settings(cls, config: Settings) -> "EngineConfig":
		return cls(
			daily_match_quota=config.match_daily_quota,
			weights=ScoreWeights(
				sentiment=config.match_weight_sentiment,
				values=config.match_weight_values,
				interests=config.match_weight_interests,
				authenticity=config.match_weight_authenticity,
			),
			timezone=config.quota_timezone,
			authenticity_window=config.authenticity_window,
		)
