# file: services/messaging.py

import asyncio
from typing import List, Optional

from firebase_admin import exceptions, messaging
from pydantic import BaseModel

INVALID_REGISTRATION_TOKEN = "invalid-registration-token"
REGISTRATION_TOKEN_NOT_REGISTERED = "registration-token-not-registered"


class SendOutcome(BaseModel):
    success: bool
    error_code: Optional[str] = None


class MulticastResult(BaseModel):
    success_count: int
    failure_count: int
    outcomes: List[SendOutcome]


def error_code_for(error: Optional[Exception]) -> str:
    """Maps an Admin SDK send error onto an FCM error code string."""
    if error is None:
        return "unknown-error"
    if isinstance(error, messaging.UnregisteredError):
        return REGISTRATION_TOKEN_NOT_REGISTERED
    if isinstance(error, exceptions.InvalidArgumentError) and "registration token" in str(error).lower():
        return INVALID_REGISTRATION_TOKEN
    code = getattr(error, "code", None)
    if code:
        return str(code).lower().replace("_", "-")
    return type(error).__name__


class FirebaseMessenger:
    """Firebase Cloud Messaging gateway."""

    def __init__(self, app=None):
        self.app = app

    async def send_multicast(self, message: messaging.MulticastMessage) -> MulticastResult:
        # The Admin SDK call blocks, so it runs off the event loop
        response = await asyncio.to_thread(messaging.send_each_for_multicast, message, app=self.app)
        outcomes = [
            SendOutcome(success=True) if resp.success
            else SendOutcome(success=False, error_code=error_code_for(resp.exception))
            for resp in response.responses
        ]
        return MulticastResult(
            success_count=response.success_count,
            failure_count=response.failure_count,
            outcomes=outcomes,
        )


def get_messenger() -> FirebaseMessenger:
    return FirebaseMessenger()
