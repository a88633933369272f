"""Daily discovery queue: admission under quota, scoring and resolution."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import AbstractSet, Dict, Iterable, List, Optional

from vibecircle.domain.common.context import SessionContext
from vibecircle.domain.common.errors import AlreadyResolved, EngineError, NotFound
from vibecircle.domain.common.result import Result
from vibecircle.domain.common.unit_of_work import UnitOfWork
from vibecircle.domain.common.validation import parse
from vibecircle.domain.matching.models import Match, MatchCandidate, MatchPreferences, MatchStatus
from vibecircle.domain.matching.schemas import MatchPreferencesPatch
from vibecircle.domain.matching.scoring import build_insight, compatibility_score
from vibecircle.domain.profile.models import Profile

logger = logging.getLogger(__name__)


class MatchStore:
	"""Owns today's match queue and the remaining admission quota."""

	def __init__(self, ctx: SessionContext) -> None:
		self.ctx = ctx
		self._matches: Dict[str, Match] = {}
		self._day: date = ctx.clock.today()
		self._remaining = ctx.config.daily_match_quota
		self._seq = 0
		self._preferences = MatchPreferences()

	def _roll_day(self) -> None:
		today = self.ctx.clock.today()
		if today == self._day:
			return
		logger.info(
			"match day rolled over",
			extra={"previous_day": self._day.isoformat(), "discarded": len(self._matches)},
		)
		self._day = today
		self._remaining = self.ctx.config.daily_match_quota
		self._matches.clear()

	@property
	def daily_quota(self) -> int:
		return self.ctx.config.daily_match_quota

	@property
	def remaining_today(self) -> int:
		self._roll_day()
		return self._remaining

	@property
	def preferences(self) -> MatchPreferences:
		return self._preferences

	def list_today(self) -> List[Match]:
		"""Today's queue, best score first; ties keep admission order."""
		self._roll_day()
		return sorted(self._matches.values(), key=lambda match: (-match.compatibility_score, match.seq))

	def get(self, match_id: str) -> Optional[Match]:
		self._roll_day()
		return self._matches.get(match_id)

	def admit(
		self,
		tx: UnitOfWork,
		candidates: Iterable[MatchCandidate],
		*,
		profile: Profile,
		joined_circle_ids: AbstractSet[str],
	) -> List[Match]:
		"""Score and queue candidates while quota remains.

		Candidates already queued today are skipped without spending quota.
		"""
		self._roll_day()
		previous_remaining, previous_seq = self._remaining, self._seq
		admitted: List[Match] = []
		for candidate in candidates:
			if self._remaining <= 0:
				break
			if candidate.id in self._matches:
				continue
			insight = build_insight(
				sentiment_match=candidate.sentiment_match,
				values_alignment=candidate.values_alignment,
				interest_overlap_score=candidate.interest_overlap,
				authenticity_match_score=candidate.authenticity_match,
				my_interests=profile.interests,
				their_interests=candidate.user.interests,
				my_authenticity=profile.authenticity_score,
				their_authenticity=candidate.user.authenticity_score,
			)
			self._seq += 1
			match = Match(
				id=candidate.id,
				user=candidate.user,
				insight=insight,
				compatibility_score=compatibility_score(insight, self.ctx.config.weights),
				admitted_on=self._day,
				seq=self._seq,
				vibe=candidate.vibe,
				member_circles=candidate.circle_ids,
				shared_circles=candidate.circle_ids & frozenset(joined_circle_ids),
			)
			self._matches[match.id] = match
			self._remaining -= 1
			admitted.append(match)
			tx.record(
				"match",
				match.id,
				user_id=match.user.id,
				status=match.status,
				insight=match.insight,
				compatibility_score=match.compatibility_score,
				shared_circles=match.shared_circles,
				admitted_on=match.admitted_on,
			)

		if admitted:
			admitted_ids = [match.id for match in admitted]

			def undo() -> None:
				for match_id in admitted_ids:
					self._matches.pop(match_id, None)
				self._remaining, self._seq = previous_remaining, previous_seq

			tx.compensate(undo)
			tx.record("match_quota", self._day.isoformat(), remaining=self._remaining)
		return admitted

	def resolve(self, tx: UnitOfWork, match_id: str, status: MatchStatus) -> Match:
		"""Move a pending match to its final status. Quota is not touched."""
		self._roll_day()
		current = self._matches.get(match_id)
		if current is None:
			raise NotFound(detail=f"match:{match_id}")
		if not current.is_pending:
			raise AlreadyResolved(detail=current.status.value)
		updated = replace(current, status=status)
		self._matches[match_id] = updated

		def undo() -> None:
			self._matches[match_id] = current

		tx.compensate(undo)
		tx.record("match", match_id, status=status)
		return updated

	def refresh_shared_circles(self, tx: UnitOfWork, joined_ids: AbstractSet[str]) -> int:
		"""Recompute shared circles of queued matches; returns how many changed."""
		joined = frozenset(joined_ids)
		previous: Dict[str, Match] = {}
		for match_id, match in list(self._matches.items()):
			shared = match.member_circles & joined
			if shared == match.shared_circles:
				continue
			previous[match_id] = match
			self._matches[match_id] = replace(match, shared_circles=shared)
			tx.record("match", match_id, shared_circles=shared)
		if previous:

			def undo() -> None:
				for match_id, match in previous.items():
					if match_id in self._matches:
						self._matches[match_id] = match

			tx.compensate(undo)
		return len(previous)

	async def update_preferences(self, patch) -> Result[MatchPreferences]:
		try:
			changes = parse(MatchPreferencesPatch, patch).model_dump(exclude_none=True)
			async with UnitOfWork(self.ctx, "update_match_preferences") as tx:
				current = self._preferences
				self._preferences = replace(current, **changes)

				def undo() -> None:
					self._preferences = current

				tx.compensate(undo)
				tx.record("match_preferences", self.ctx.user_id, **self._preferences.to_dict())
		except EngineError as exc:
			return Result.failure(exc)
		return Result.success(self._preferences)

	def clear(self) -> None:
		self._matches.clear()
		self._remaining = self.ctx.config.daily_match_quota
		self._seq = 0
		self._preferences = MatchPreferences()
