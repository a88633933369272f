"""Domain-level error taxonomy shared by every store."""

from __future__ import annotations


class EngineError(Exception):
	"""Base class for engine operation failures."""

	reason: str = "unknown"

	def __init__(self, reason: str | None = None, *, detail: str | None = None) -> None:
		if reason:
			self.reason = reason
		self.detail = detail
		super().__init__(f"{self.reason}: {detail}" if detail else self.reason)


class NotFound(EngineError):
	reason = "not_found"


class AlreadyResolved(EngineError):
	reason = "already_resolved"


class AlreadyJoined(EngineError):
	reason = "already_joined"


class CapacityExceeded(EngineError):
	reason = "capacity_exceeded"


class InvalidInput(EngineError):
	reason = "invalid_input"


class InvalidSchedule(InvalidInput):
	reason = "invalid_schedule"


class UnknownCategory(InvalidInput):
	reason = "unknown_category"


class AlreadyPublished(EngineError):
	reason = "already_published"


class AuthenticationFailed(EngineError):
	reason = "authentication_failed"


class InvalidTransition(EngineError):
	reason = "invalid_transition"


class PersistenceFailed(EngineError):
	reason = "persistence_failed"
