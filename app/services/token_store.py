# file: services/token_store.py

import logging
from typing import Dict, List, Optional, Set, Tuple

from google.cloud import firestore
from google.cloud.firestore_v1.field_path import FieldPath

from app.database.connection import FCM_TOKENS
from app.models.notification import DeviceToken

logger = logging.getLogger(__name__)


def _token_field(device_id: str) -> str:
    # Device ids may contain characters that need quoting in a field path
    return FieldPath("tokens", device_id).to_api_repr()


class TokenStore:
    """
    Reads and prunes the per-user `fcm_tokens/{userId}` document, whose
    `tokens` map is keyed by device id.
    """

    def __init__(self, db: firestore.AsyncClient):
        self.db = db

    def _document(self, user_id: str):
        return self.db.collection(FCM_TOKENS).document(user_id)

    async def fetch_tokens(self, user_id: str) -> Tuple[List[str], Dict[str, DeviceToken]]:
        snapshot = await self._document(user_id).get()
        if not snapshot.exists:
            return [], {}

        entries = (snapshot.to_dict() or {}).get("tokens") or {}
        token_index: Dict[str, DeviceToken] = {}
        for device_id, entry in entries.items():
            if not isinstance(entry, dict) or not entry.get("token"):
                logger.warning(f"Skipping malformed token entry {device_id} for user {user_id}")
                continue
            token_index[device_id] = DeviceToken.model_validate(entry)

        tokens = [device.token for device in token_index.values()]
        return tokens, token_index

    async def remove_tokens(
            self,
            user_id: str,
            dead_tokens: Set[str],
            token_index: Dict[str, DeviceToken],
    ) -> List[str]:
        """
        Deletes every device entry whose token is in `dead_tokens` and returns
        the removed device ids. Write failures are logged, not raised.
        """
        if not dead_tokens:
            return []

        device_ids = [
            device_id for device_id, device in token_index.items()
            if device.token in dead_tokens
        ]
        if not device_ids:
            return []

        logger.info(f"Removing {len(device_ids)} invalid token(s) for user {user_id}")
        try:
            updates = {_token_field(device_id): firestore.DELETE_FIELD for device_id in device_ids}
            await self._document(user_id).update(updates)
        except Exception:
            logger.exception(f"Failed to remove invalid tokens for user {user_id}")
            return []
        return device_ids

    async def register_token(self, user_id: str, device_id: str, token: str, platform: Optional[str] = None) -> None:
        _, token_index = await self.fetch_tokens(user_id)

        entries = {
            device_id: {
                "token": token,
                "platform": platform,
                "updatedAt": firestore.SERVER_TIMESTAMP,
            }
        }
        # A token moving to a new device id must not stay registered twice
        for other_id, device in token_index.items():
            if other_id != device_id and device.token == token:
                entries[other_id] = firestore.DELETE_FIELD

        await self._document(user_id).set({"tokens": entries}, merge=True)
        logger.info(f"Registered FCM token for user {user_id} on device {device_id}")

    async def unregister_token(self, user_id: str, device_id: str) -> bool:
        _, token_index = await self.fetch_tokens(user_id)
        if device_id not in token_index:
            return False

        await self._document(user_id).update({_token_field(device_id): firestore.DELETE_FIELD})
        logger.info(f"Unregistered device {device_id} for user {user_id}")
        return True
