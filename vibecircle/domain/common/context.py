"""Per-session wiring shared by the stores of one user."""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import uuid4

from vibecircle.domain.common.config import EngineConfig
from vibecircle.infra.clock import Clock
from vibecircle.infra.persistence import NullWriteThrough, WriteThrough


@dataclass(frozen=True, slots=True)
class SessionContext:
	user_id: str
	config: EngineConfig = field(default_factory=EngineConfig)
	writer: WriteThrough = field(default_factory=NullWriteThrough)
	clock: Clock = field(default_factory=Clock)
	session_id: str = field(default_factory=lambda: uuid4().hex)
