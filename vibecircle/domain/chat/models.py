"""Domain models for conversations, messages and hangouts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


class ConversationKind(str, Enum):
	DIRECT = "direct"
	CIRCLE = "circle"


class FriendshipLevel(str, Enum):
	NEW = "new"
	GROWING = "growing"
	ESTABLISHED = "established"
	CLOSE = "close"


# Highest threshold first
FRIENDSHIP_THRESHOLDS: Tuple[Tuple[int, FriendshipLevel], ...] = (
	(150, FriendshipLevel.CLOSE),
	(50, FriendshipLevel.ESTABLISHED),
	(10, FriendshipLevel.GROWING),
)


def friendship_level(message_count: int) -> FriendshipLevel:
	for threshold, level in FRIENDSHIP_THRESHOLDS:
		if message_count >= threshold:
			return level
	return FriendshipLevel.NEW


@dataclass(frozen=True, slots=True)
class ConversationSource:
	"""What a conversation hangs off: a connected match or a joined circle."""

	kind: ConversationKind
	source_id: str

	@property
	def key(self) -> Tuple[str, str]:
		return (self.kind.value, self.source_id)


@dataclass(frozen=True, slots=True)
class ConversationRef:
	conversation_id: str
	kind: ConversationKind
	source_id: str


@dataclass(frozen=True, slots=True)
class Message:
	id: str
	conversation_id: str
	sender_id: str
	content: str
	seq: int
	sent_at: datetime

	def to_dict(self) -> dict:
		return {
			"conversation_id": self.conversation_id,
			"sender_id": self.sender_id,
			"content": self.content,
			"seq": self.seq,
			"sent_at": self.sent_at.isoformat(),
		}


@dataclass(frozen=True, slots=True)
class Conversation:
	id: str
	kind: ConversationKind
	source_id: str
	created_at: datetime
	name: str = ""
	participant_ids: Tuple[str, ...] = ()
	last_message: Optional[Message] = None
	message_count: int = 0
	unread_count: int = 0
	friendship_level: FriendshipLevel = FriendshipLevel.NEW

	@property
	def last_activity_at(self) -> datetime:
		return self.last_message.sent_at if self.last_message else self.created_at

	def ref(self) -> ConversationRef:
		return ConversationRef(conversation_id=self.id, kind=self.kind, source_id=self.source_id)


@dataclass(frozen=True, slots=True)
class Hangout:
	id: str
	conversation_id: str
	title: str
	scheduled_for: datetime
	created_at: datetime
	is_virtual: bool = False
	location: str = ""
	notes: Optional[str] = None

	def to_dict(self) -> dict:
		return {
			"conversation_id": self.conversation_id,
			"title": self.title,
			"scheduled_for": self.scheduled_for.isoformat(),
			"is_virtual": self.is_virtual,
			"location": self.location,
			"notes": self.notes,
			"created_at": self.created_at.isoformat(),
		}
