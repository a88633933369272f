"""Vibe store: recording state, drafts, selection and publishing."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, List, Optional
from uuid import uuid4

from vibecircle.domain.common.context import SessionContext
from vibecircle.domain.common.errors import AlreadyPublished, EngineError, InvalidTransition, NotFound
from vibecircle.domain.common.result import Result
from vibecircle.domain.common.unit_of_work import UnitOfWork
from vibecircle.domain.common.validation import parse
from vibecircle.domain.vibes.models import RecordingState, Vibe, VibeStatus
from vibecircle.domain.vibes.schemas import VibeDraftPatch, VibeDraftRequest

logger = logging.getLogger(__name__)


class VibeStore:
	def __init__(self, ctx: SessionContext) -> None:
		self.ctx = ctx
		self._vibes: Dict[str, Vibe] = {}
		self._recording = RecordingState()
		self._selected_id: Optional[str] = None

	@property
	def recording(self) -> RecordingState:
		return self._recording

	@property
	def selected(self) -> Optional[Vibe]:
		if self._selected_id is None:
			return None
		return self._vibes.get(self._selected_id)

	def get(self, vibe_id: str) -> Optional[Vibe]:
		return self._vibes.get(vibe_id)

	def list(self) -> List[Vibe]:
		"""Newest first."""
		return sorted(self._vibes.values(), key=lambda vibe: vibe.created_at, reverse=True)

	def start_recording(self, prompt: Optional[str] = None) -> Result[RecordingState]:
		if self._recording.is_recording:
			return Result.failure(InvalidTransition(detail="already_recording"))
		self._recording = RecordingState(is_recording=True, prompt=prompt, started_at=self.ctx.clock.now())
		return Result.success(self._recording)

	def stop_recording(self) -> Result[RecordingState]:
		if not self._recording.is_recording:
			return Result.failure(InvalidTransition(detail="not_recording"))
		# the prompt stays around for the draft that follows
		self._recording = RecordingState(prompt=self._recording.prompt)
		return Result.success(self._recording)

	async def save_draft(self, request) -> Result[Vibe]:
		try:
			data = parse(VibeDraftRequest, request)
			vibe = Vibe(
				id=str(uuid4()),
				owner_id=self.ctx.user_id,
				video_uri=data.video_uri,
				authenticity=data.authenticity,
				created_at=self.ctx.clock.now(),
				prompt=data.prompt if data.prompt is not None else self._recording.prompt,
				tags=data.tags,
				visibility=data.visibility,
			)
			async with UnitOfWork(self.ctx, "save_draft") as tx:
				self._vibes[vibe.id] = vibe
				tx.compensate(lambda: self._vibes.pop(vibe.id, None))
				tx.record("vibe", vibe.id, **vibe.to_dict())
		except EngineError as exc:
			return Result.failure(exc)
		return Result.success(vibe)

	async def update_draft(self, vibe_id: str, **changes) -> Result[Vibe]:
		try:
			patch = parse(VibeDraftPatch, changes).model_dump(exclude_none=True)
			async with UnitOfWork(self.ctx, "update_draft") as tx:
				current = self._require_draft(vibe_id)
				updated = replace(current, **patch)
				self._vibes[vibe_id] = updated
				tx.compensate(lambda: self._vibes.__setitem__(vibe_id, current))
				tx.record("vibe", vibe_id, **{key: getattr(updated, key) for key in patch})
		except EngineError as exc:
			return Result.failure(exc)
		return Result.success(updated)

	def select(self, vibe_id: Optional[str]) -> Result[Optional[Vibe]]:
		if vibe_id is not None and vibe_id not in self._vibes:
			return Result.failure(NotFound(detail=f"vibe:{vibe_id}"))
		self._selected_id = vibe_id
		return Result.success(self.selected)

	def _require_draft(self, vibe_id: str) -> Vibe:
		vibe = self._vibes.get(vibe_id)
		if vibe is None:
			raise NotFound(detail=f"vibe:{vibe_id}")
		if vibe.is_published:
			raise AlreadyPublished(detail=vibe_id)
		return vibe

	def publish(self, tx: UnitOfWork, vibe_id: str) -> Vibe:
		current = self._require_draft(vibe_id)
		published = replace(current, status=VibeStatus.PUBLISHED, published_at=self.ctx.clock.now())
		self._vibes[vibe_id] = published
		tx.compensate(lambda: self._vibes.__setitem__(vibe_id, current))
		tx.record("vibe", vibe_id, status=published.status, published_at=published.published_at)
		return published

	def clear(self) -> None:
		self._vibes.clear()
		self._recording = RecordingState()
		self._selected_id = None
