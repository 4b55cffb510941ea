from fastapi import APIRouter, Depends, HTTPException, status
from google.cloud.firestore import AsyncClient
from pydantic import BaseModel, field_validator
from typing import Optional

from app.database.connection import get_db
from app.services.firebase_auth import get_current_uid
from app.services.token_store import TokenStore

router = APIRouter()


class FCMTokenRequest(BaseModel):
    device_id: str
    fcm_token: str
    platform: Optional[str] = None

    @field_validator('device_id', 'fcm_token')
    def validate_not_blank(cls, v):
        if not v.strip():
            raise ValueError('Value cannot be empty')
        return v.strip()


@router.post("/fcm-token")
async def register_fcm_token(
    request: FCMTokenRequest,
    uid: str = Depends(get_current_uid),
    db: AsyncClient = Depends(get_db)
):
    await TokenStore(db).register_token(uid, request.device_id, request.fcm_token, request.platform)
    return {"message": "FCM token registered successfully"}


@router.delete("/fcm-token/{device_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unregister_fcm_token(
    device_id: str,
    uid: str = Depends(get_current_uid),
    db: AsyncClient = Depends(get_db)
):
    """
    Removes the token registered for one of the caller's devices, e.g. on sign-out.
    """
    if not await TokenStore(db).unregister_token(uid, device_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Device not registered")
    return
