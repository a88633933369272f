"""Session lifecycle models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from vibecircle.domain.circles.models import Circle
from vibecircle.domain.profile.models import Profile


class SessionState(str, Enum):
	ANONYMOUS = "anonymous"
	AUTHENTICATING = "authenticating"
	AUTHENTICATED_ONBOARDING = "authenticated_onboarding"
	AUTHENTICATED_ACTIVE = "authenticated_active"

	@property
	def is_authenticated(self) -> bool:
		return self in (SessionState.AUTHENTICATED_ONBOARDING, SessionState.AUTHENTICATED_ACTIVE)


@dataclass(frozen=True, slots=True)
class Account:
	"""What the authenticator hands back: the profile seed and onboarding flag."""

	profile: Profile
	has_completed_onboarding: bool = False
	circles: Tuple[Circle, ...] = ()

	@property
	def user_id(self) -> str:
		return self.profile.id
