"""Chat domain exports."""

from .models import ConversationKind, ConversationRef, ConversationSource, FriendshipLevel, friendship_level
from .service import ConversationStore

__all__ = [
	"ConversationKind",
	"ConversationRef",
	"ConversationSource",
	"ConversationStore",
	"FriendshipLevel",
	"friendship_level",
]
