"""Per-user serialization boundary for cross-store flows."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class UserLocks:
	"""Hands out one asyncio.Lock per user id.

	Flows for the same user queue behind each other; different users never share
	a lock and run independently.
	"""

	def __init__(self) -> None:
		self._locks: Dict[str, asyncio.Lock] = {}
		# callers holding or waiting on each lock
		self._holders: Dict[str, int] = {}

	def lock_for(self, user_id: str) -> asyncio.Lock:
		lock = self._locks.get(user_id)
		if lock is None:
			lock = asyncio.Lock()
			self._locks[user_id] = lock
		return lock

	def holders(self, user_id: str) -> int:
		return self._holders.get(user_id, 0)

	@asynccontextmanager
	async def hold(self, user_id: str) -> AsyncIterator[None]:
		lock = self.lock_for(user_id)
		self._holders[user_id] = self.holders(user_id) + 1
		try:
			async with lock:
				yield
		finally:
			remaining = self.holders(user_id) - 1
			if remaining:
				self._holders[user_id] = remaining
			else:
				self._holders.pop(user_id, None)

	def release(self, user_id: str) -> None:
		"""Forget the lock of a user whose session ended, unless anyone holds or awaits it."""
		lock = self._locks.get(user_id)
		if lock is not None and not lock.locked() and not self.holders(user_id):
			del self._locks[user_id]

	def __len__(self) -> int:
		return len(self._locks)


user_locks = UserLocks()
