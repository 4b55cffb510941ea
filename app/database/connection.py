# file: database/connection.py

from typing import Callable

from firebase_admin import firestore_async
from google.cloud.firestore import AsyncClient

from app.services.firebase_auth import initialize_firebase

# Firestore collections used by the notification services
USERS = "users"
PROJECTS = "projects"
CONVERSATIONS = "conversations"
FCM_TOKENS = "fcm_tokens"
NOTIFICATIONS = "notifications"


def get_db() -> AsyncClient:
    """Returns the app's async Firestore client, initializing Firebase on first use."""
    initialize_firebase()
    return firestore_async.client()


def get_db_provider() -> Callable[[], AsyncClient]:
    """
    Hands out `get_db` itself so callers that must never fail can open the
    client inside their own error handling.
    """
    return get_db
