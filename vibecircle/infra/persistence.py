"""Write-through boundary to the durable store.

The engine decides *what* changed (entity name, id and new field values); the
collaborator behind :class:`WriteThrough` decides how it is stored.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Mapping, Protocol, Sequence

from redis.exceptions import RedisError

from vibecircle.infra.redis import RedisProxy, redis_client
from vibecircle.settings import Settings

logger = logging.getLogger(__name__)

WRITES_STREAM = "x:vibecircle.writes"


class PersistenceError(RuntimeError):
	"""Raised by a write-through collaborator when a flush cannot be stored."""


@dataclass(frozen=True, slots=True)
class EntityWrite:
	entity: str
	entity_id: str
	fields: Mapping[str, Any] = field(default_factory=dict)

	def encoded_fields(self) -> dict[str, str]:
		return {key: json.dumps(value, default=_json_default) for key, value in self.fields.items()}


def _json_default(value: Any) -> Any:
	if isinstance(value, (datetime, date)):
		return value.isoformat()
	if isinstance(value, (set, frozenset)):
		return sorted(value, key=str)
	if isinstance(value, Enum):
		return value.value
	if hasattr(value, "to_dict"):
		return value.to_dict()
	raise TypeError(f"unserializable field value: {type(value).__name__}")


class WriteThrough(Protocol):
	async def write_many(self, user_id: str, writes: Sequence[EntityWrite]) -> None:
		"""Durably store every write or raise PersistenceError."""
		...


class NullWriteThrough:
	"""Discards writes; used when the embedding layer persists on its own."""

	async def write_many(self, user_id: str, writes: Sequence[EntityWrite]) -> None:
		return None


class MemoryWriteThrough:
	"""Keeps every flushed write in order. Can be armed to fail the next flushes."""

	def __init__(self) -> None:
		self.flushes: list[tuple[str, tuple[EntityWrite, ...]]] = []
		self._fail_next = 0

	def fail_next(self, times: int = 1) -> None:
		self._fail_next = times

	@property
	def writes(self) -> list[EntityWrite]:
		return [write for _, batch in self.flushes for write in batch]

	def entities(self, entity: str) -> list[EntityWrite]:
		return [write for write in self.writes if write.entity == entity]

	async def write_many(self, user_id: str, writes: Sequence[EntityWrite]) -> None:
		if self._fail_next > 0:
			self._fail_next -= 1
			raise PersistenceError("memory write-through armed to fail")
		self.flushes.append((user_id, tuple(writes)))


class RedisWriteThrough:
	"""Stores each entity as a hash and appends the change to an audit stream."""

	def __init__(self, client: RedisProxy | None = None, *, stream: str = WRITES_STREAM) -> None:
		self._client = client or redis_client
		self._stream = stream

	@staticmethod
	def key_for(user_id: str, write: EntityWrite) -> str:
		return f"vc:{user_id}:{write.entity}:{write.entity_id}"

	async def write_many(self, user_id: str, writes: Sequence[EntityWrite]) -> None:
		if not writes:
			return
		try:
			async with self._client.pipeline(transaction=True) as pipe:
				for write in writes:
					encoded = write.encoded_fields()
					if encoded:
						pipe.hset(self.key_for(user_id, write), mapping=encoded)
					pipe.xadd(
						self._stream,
						{
							"user_id": user_id,
							"entity": write.entity,
							"entity_id": write.entity_id,
							"fields": ",".join(sorted(encoded)) or "none",
						},
					)
				await pipe.execute()
		except RedisError as exc:
			logger.warning("write-through failed for user %s: %s", user_id[:8], exc)
			raise PersistenceError(str(exc)) from exc


def build_write_through(config: Settings) -> WriteThrough:
	if config.persistence_backend == "redis":
		return RedisWriteThrough()
	if config.persistence_backend == "memory":
		return MemoryWriteThrough()
	return NullWriteThrough()
