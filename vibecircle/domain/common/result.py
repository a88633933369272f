"""Explicit success/failure values returned by engine operations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from vibecircle.domain.common.errors import EngineError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
	value: Optional[T] = None
	error: Optional[EngineError] = None

	@classmethod
	def success(cls, value: Optional[T] = None) -> "Result[T]":
		return cls(value=value)

	@classmethod
	def failure(cls, error: EngineError) -> "Result[T]":
		return cls(error=error)

	@property
	def ok(self) -> bool:
		return self.error is None

	@property
	def reason(self) -> Optional[str]:
		return self.error.reason if self.error is not None else None

	def unwrap(self) -> T:
		"""Return the value or raise the carried error."""
		if self.error is not None:
			raise self.error
		return self.value  # type: ignore[return-value]

	def __bool__(self) -> bool:
		return self.ok
