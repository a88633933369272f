"""All-or-nothing application of in-memory mutations plus their write-through."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from vibecircle.domain.common.context import SessionContext
from vibecircle.domain.common.errors import EngineError, PersistenceFailed
from vibecircle.infra.persistence import EntityWrite, PersistenceError
from vibecircle.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

Compensation = Callable[[], None]
AfterCommit = Callable[[], Awaitable[None]]


class UnitOfWork:
	"""Collects entity writes and compensations for one operation.

	Stores mutate their in-memory state eagerly and register how to undo it.
	On a clean exit every recorded write is flushed in one call to the session's
	write-through; if the block raises, or the flush fails, the compensations run
	in reverse order and nothing is left half applied.
	"""

	def __init__(self, ctx: SessionContext, name: str) -> None:
		self.ctx = ctx
		self.name = name
		self._writes: Dict[Tuple[str, str], Dict[str, Any]] = {}
		self._compensations: List[Compensation] = []
		self._after_commit: List[AfterCommit] = []
		self.committed = False

	def record(self, entity: str, entity_id: str, **fields: Any) -> None:
		"""Queue new field values for an entity; later calls merge into earlier ones."""
		self._writes.setdefault((entity, entity_id), {}).update(fields)

	def compensate(self, undo: Compensation) -> None:
		self._compensations.append(undo)

	def after_commit(self, hook: AfterCommit) -> None:
		self._after_commit.append(hook)

	@property
	def writes(self) -> List[EntityWrite]:
		return [
			EntityWrite(entity=entity, entity_id=entity_id, fields=dict(fields))
			for (entity, entity_id), fields in self._writes.items()
		]

	def rollback(self, reason: str) -> None:
		for undo in reversed(self._compensations):
			undo()
		self._compensations.clear()
		self._writes.clear()
		self._after_commit.clear()
		obs_metrics.inc_flow_rollback(self.name, reason)

	async def commit(self) -> None:
		writes = self.writes
		if writes:
			try:
				await self.ctx.writer.write_many(self.ctx.user_id, writes)
			except PersistenceError as exc:
				logger.warning("%s: write-through failed, rolling back %d writes", self.name, len(writes))
				self.rollback(PersistenceFailed.reason)
				raise PersistenceFailed(detail=str(exc)) from exc
		self.committed = True
		hooks, self._after_commit = self._after_commit, []
		for hook in hooks:
			await hook()

	async def __aenter__(self) -> "UnitOfWork":
		return self

	async def __aexit__(self, exc_type, exc: Optional[BaseException], tb) -> bool:
		if exc is not None:
			reason = exc.reason if isinstance(exc, EngineError) else type(exc).__name__
			self.rollback(reason)
			return False
		await self.commit()
		return False
