"""Re-validation of inbound arguments with pydantic request models."""

from __future__ import annotations

from typing import Any, Type, TypeVar

from pydantic import BaseModel, ValidationError

from vibecircle.domain.common.errors import InvalidInput

M = TypeVar("M", bound=BaseModel)


def describe(exc: ValidationError) -> str:
	first = exc.errors()[0]
	loc = ".".join(str(part) for part in first.get("loc", ())) or "input"
	return f"{loc}:{first.get('type', 'invalid')}"


def parse(model: Type[M], data: Any, *, unknown_error: Type[InvalidInput] = InvalidInput) -> M:
	"""Coerce ``data`` into ``model`` or raise a domain error.

	Unknown keys on models configured with ``extra="forbid"`` raise
	``unknown_error``, every other problem InvalidInput.
	"""
	if isinstance(data, model):
		return data
	if isinstance(data, BaseModel):
		data = data.model_dump(exclude_unset=True)
	try:
		return model.model_validate(data)
	except ValidationError as exc:
		extra = [err for err in exc.errors() if err.get("type") == "extra_forbidden"]
		if extra:
			keys = ",".join(sorted(str(err["loc"][-1]) for err in extra))
			raise unknown_error(detail=keys) from exc
		raise InvalidInput(detail=describe(exc)) from exc
