# file: services/lookups.py

from typing import Any, Dict, Optional

from google.cloud.firestore import AsyncClient

from app.database.connection import USERS


async def get_document(db: AsyncClient, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
    """Returns the document's data, or None when it does not exist."""
    snapshot = await db.collection(collection).document(doc_id).get()
    if not snapshot.exists:
        return None
    return snapshot.to_dict() or {}


async def get_display_name(db: AsyncClient, user_id: str, default: str) -> str:
    user = await get_document(db, USERS, user_id)
    name = (user or {}).get("name")
    if isinstance(name, str) and name:
        return name
    return default
