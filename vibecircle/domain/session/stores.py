"""Per-session bundle of stores."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from vibecircle.domain.chat.service import ConversationStore
from vibecircle.domain.circles.service import CircleStore
from vibecircle.domain.common.context import SessionContext
from vibecircle.domain.matching.service import MatchStore
from vibecircle.domain.notifications.delivery import NotificationSink
from vibecircle.domain.notifications.service import NotificationStore
from vibecircle.domain.profile.service import ProfileStore
from vibecircle.domain.session.models import Account
from vibecircle.domain.vibes.service import VibeStore


@dataclass(slots=True)
class UserStores:
	ctx: SessionContext
	profile: ProfileStore
	vibes: VibeStore
	circles: CircleStore
	matches: MatchStore
	conversations: ConversationStore
	notifications: NotificationStore
	closed: bool = False

	@classmethod
	def build(cls, ctx: SessionContext, account: Account, *, sink: Optional[NotificationSink] = None) -> "UserStores":
		circles = CircleStore(ctx)
		circles.load(account.circles)
		# the joined list is authoritative for the counter
		seed = account.profile
		profile = replace(seed, stats=replace(seed.stats, circles_joined=len(circles.joined_ids())))
		return cls(
			ctx=ctx,
			profile=ProfileStore(ctx, profile),
			vibes=VibeStore(ctx),
			circles=circles,
			matches=MatchStore(ctx),
			conversations=ConversationStore(ctx),
			notifications=NotificationStore(ctx, sink),
		)

	def clear(self) -> None:
		"""Wipe every store and refuse further flows on this bundle."""
		self.closed = True
		self.matches.clear()
		self.circles.clear()
		self.conversations.clear()
		self.notifications.clear()
		self.vibes.clear()
		self.profile.clear()
