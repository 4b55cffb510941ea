# file: models/events.py

from pydantic import BaseModel
from typing import Any, Dict, Optional


class MessagePathParams(BaseModel):
    conversationId: str
    messageId: str


class RequestPathParams(BaseModel):
    projectId: str
    requestId: str


class MessageCreatedEvent(BaseModel):
    """conversations/{conversationId}/messages/{messageId} was created."""
    params: MessagePathParams
    data: Optional[Dict[str, Any]] = None


class RequestCreatedEvent(BaseModel):
    """projects/{projectId}/requests/{requestId} was created."""
    params: RequestPathParams
    data: Optional[Dict[str, Any]] = None


class RequestUpdatedEvent(BaseModel):
    """projects/{projectId}/requests/{requestId} was updated."""
    params: RequestPathParams
    before: Optional[Dict[str, Any]] = None
    after: Optional[Dict[str, Any]] = None
