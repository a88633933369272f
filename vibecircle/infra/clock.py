"""Time source with a configurable local-day boundary."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Callable, Optional
from zoneinfo import ZoneInfo


class Clock:
	def __init__(self, tz_name: str = "UTC", *, now_fn: Optional[Callable[[], datetime]] = None) -> None:
		self._tz = ZoneInfo(tz_name)
		self._now_fn = now_fn or (lambda: datetime.now(timezone.utc))

	def now(self) -> datetime:
		current = self._now_fn()
		if current.tzinfo is None:
			current = current.replace(tzinfo=timezone.utc)
		return current

	def today(self) -> date:
		"""Calendar day in the configured timezone."""
		return self.now().astimezone(self._tz).date()

