"""
repositories/chat_message_repo.py
----------------------------------
Data access layer for chatbot conversation messages.
All SQL queries related to the `chatbot_messages` table live here.
"""

from typing import Optional

from config import DEFAULT_MESSAGE_HISTORY
from models.entity import EntityDescriptor
from repositories.base import EntityRepository

CHAT_MESSAGES = EntityDescriptor(
    table="chatbot_messages",
    fields=("conversation_id", "role", "content", "model", "created_at"),
    required_fields=("conversation_id", "role"),
    searchable_fields=("content",),
    order_by=("created_at",),
)


class ChatMessageRepository(EntityRepository):
    """Repository for CRUD operations on the chatbot_messages table."""

    def __init__(self, **kwargs):
        super().__init__(CHAT_MESSAGES, **kwargs)

    # ── CREATE ────────────────────────────────────────────

    def create_message(self, data: dict) -> Optional[int]:
        """
        Append a message to a conversation.

        Args:
            data: At least `conversation_id` and `role`; usually `content`
                and, for assistant turns, `model`.

        Returns:
            The new message id, or None if it could not be stored.
        """
        result = self.create(data)
        return result.value if result else None

    # ── READ ──────────────────────────────────────────────

    def get_messages_by_conversation(
        self, conversation_id: int, limit: int = DEFAULT_MESSAGE_HISTORY
    ) -> list[dict]:
        """
        Fetch the history of a conversation, oldest message first.

        Args:
            conversation_id: Conversation the messages belong to.
            limit: Maximum number of messages to return.
        """
        return self.get_all(limit=limit, filters={"conversation_id": conversation_id})

    def get_message_count(self, conversation_id: int) -> int:
        return self.get_count(filters={"conversation_id": conversation_id})

    # ── DELETE ────────────────────────────────────────────

    def delete_messages_by_conversation(self, conversation_id: int) -> bool:
        """Remove the whole history of a conversation."""
        return self.delete_where({"conversation_id": conversation_id})
