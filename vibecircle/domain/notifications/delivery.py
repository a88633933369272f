"""Outbound delivery boundary for surfaced notifications."""

from __future__ import annotations

from typing import Protocol

from vibecircle.domain.notifications.models import NotificationEvent


class NotificationSink(Protocol):
	async def deliver(self, event: NotificationEvent) -> None:
		...


class NullSink:
	async def deliver(self, event: NotificationEvent) -> None:
		return None
