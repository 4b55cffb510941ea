# file: services/chat_notifier.py

import logging
from typing import Any, Dict, List, Optional

from google.cloud.firestore import AsyncClient

from app.config import MESSAGE_PREVIEW_LENGTH
from app.database.connection import CONVERSATIONS
from app.models.notification import ChatMetadata, DeliveryReport, PushContent
from app.services.lookups import get_display_name, get_document
from app.services.push_delivery import PushDelivery

logger = logging.getLogger(__name__)


def truncate_message(text: str, limit: int = MESSAGE_PREVIEW_LENGTH) -> str:
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def find_recipient(participants: List[str], sender_id: str) -> Optional[str]:
    """The first participant who is not the sender."""
    return next((uid for uid in participants if uid != sender_id), None)


class ChatNotifier:
    """Pushes new chat messages to the other participant. No in-app record is kept for chats."""

    def __init__(self, db: AsyncClient, delivery: PushDelivery):
        self.db = db
        self.delivery = delivery

    async def notify_new_message(self, conversation_id: str, message: Dict[str, Any]) -> Optional[DeliveryReport]:
        sender_id = message.get("senderId")
        if not sender_id:
            logger.info("Message has no sender, skipping")
            return None

        conversation = await get_document(self.db, CONVERSATIONS, conversation_id)
        if conversation is None:
            logger.info(f"Conversation {conversation_id} not found")
            return None

        recipient_id = find_recipient(conversation.get("participants") or [], sender_id)
        if not recipient_id:
            logger.info(f"Recipient not found in conversation {conversation_id}")
            return None

        logger.info(f"Sending notification to recipient: {recipient_id}")

        sender_name = await get_display_name(self.db, sender_id, default="Someone")
        content = PushContent(title=sender_name, body=truncate_message(str(message.get("text") or "")))
        metadata = ChatMetadata(
            conversation_id=conversation_id,
            sender_id=sender_id,
            sender_name=sender_name,
        )
        return await self.delivery.deliver(recipient_id, content, metadata)
