# file: services/push_delivery.py

import logging
from typing import Dict, List, Optional, Set

from firebase_admin import messaging

from app.config import CHAT_CHANNEL_ID, CLICK_ACTION, PROJECT_CHANNEL_ID
from app.models.notification import ChatMetadata, DeliveryReport, NotificationMetadata, ProjectMetadata, PushContent
from app.services.messaging import INVALID_REGISTRATION_TOKEN, REGISTRATION_TOKEN_NOT_REGISTERED
from app.services.token_store import TokenStore

logger = logging.getLogger(__name__)

DEAD_TOKEN_ERRORS = {INVALID_REGISTRATION_TOKEN, REGISTRATION_TOKEN_NOT_REGISTERED}


def is_dead_token_error(error_code: Optional[str]) -> bool:
    """Only these two codes mean the token will never work again; anything else is transient."""
    if not error_code:
        return False
    return error_code.removeprefix("messaging/") in DEAD_TOKEN_ERRORS


def build_data_payload(metadata: NotificationMetadata) -> Dict[str, str]:
    if isinstance(metadata, ChatMetadata):
        data = {
            "type": metadata.type,
            "conversationId": metadata.conversation_id,
            "senderId": metadata.sender_id,
            "senderName": metadata.sender_name,
        }
    elif isinstance(metadata, ProjectMetadata):
        data = {
            "type": metadata.type,
            "projectId": metadata.project_id,
            "projectTitle": metadata.project_title,
            "fromUserId": metadata.from_user_id,
            "fromUserName": metadata.from_user_name,
        }
    else:
        raise TypeError(f"Unsupported notification metadata: {type(metadata).__name__}")
    data["click_action"] = CLICK_ACTION
    return data


class PushDelivery:
    """
    Sends one multicast push to every registered device of a user and prunes
    the tokens FCM reports as permanently dead.
    """

    def __init__(
            self,
            token_store: TokenStore,
            messenger,
            chat_channel_id: str = CHAT_CHANNEL_ID,
            project_channel_id: str = PROJECT_CHANNEL_ID,
    ):
        self.token_store = token_store
        self.messenger = messenger
        self.chat_channel_id = chat_channel_id
        self.project_channel_id = project_channel_id

    def _channel_for(self, metadata: NotificationMetadata) -> str:
        if isinstance(metadata, ChatMetadata):
            return self.chat_channel_id
        return self.project_channel_id

    def build_message(
            self,
            tokens: List[str],
            content: PushContent,
            metadata: NotificationMetadata,
    ) -> messaging.MulticastMessage:
        return messaging.MulticastMessage(
            tokens=tokens,
            notification=messaging.Notification(title=content.title, body=content.body),
            data=build_data_payload(metadata),
            android=messaging.AndroidConfig(
                priority="high",
                notification=messaging.AndroidNotification(
                    channel_id=self._channel_for(metadata),
                    priority="high",
                    click_action=CLICK_ACTION,
                ),
            ),
            apns=messaging.APNSConfig(
                payload=messaging.APNSPayload(aps=messaging.Aps(badge=1, sound="default")),
            ),
        )

    def _collect_dead_tokens(self, tokens: List[str], outcomes) -> Set[str]:
        dead_tokens = set()
        for idx, (token, outcome) in enumerate(zip(tokens, outcomes)):
            if outcome.success:
                continue
            if is_dead_token_error(outcome.error_code):
                logger.info(f"Token {idx} is no longer registered ({outcome.error_code})")
                dead_tokens.add(token)
            else:
                logger.warning(f"Token {idx} failed with error: {outcome.error_code}")
        return dead_tokens

    async def deliver(
            self,
            recipient_id: str,
            content: PushContent,
            metadata: NotificationMetadata,
    ) -> DeliveryReport:
        tokens, token_index = await self.token_store.fetch_tokens(recipient_id)
        if not tokens:
            logger.info(f"No FCM tokens found for recipient {recipient_id}")
            return DeliveryReport()

        logger.info(f"Found {len(tokens)} FCM token(s) for recipient {recipient_id}")

        result = await self.messenger.send_multicast(self.build_message(tokens, content, metadata))
        logger.info(f"Successfully sent: {result.success_count}, Failed: {result.failure_count}")

        dead_tokens = self._collect_dead_tokens(tokens, result.outcomes)
        removed_ids = await self.token_store.remove_tokens(recipient_id, dead_tokens, token_index)

        return DeliveryReport(
            success_count=result.success_count,
            failure_count=result.failure_count,
            removed_tokens=sorted({token_index[device_id].token for device_id in removed_ids}),
        )
