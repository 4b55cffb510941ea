# file: models/notification.py

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Annotated, List, Literal, Optional, Union
from datetime import datetime

CHAT_MESSAGE = "chat_message"
REQUEST_RECEIVED = "request_received"
REQUEST_ACCEPTED = "request_accepted"
REQUEST_REJECTED = "request_rejected"


class PushContent(BaseModel):
    title: str
    body: str


class ChatMetadata(BaseModel):
    type: Literal["chat_message"] = CHAT_MESSAGE
    conversation_id: str
    sender_id: str
    sender_name: str


class ProjectMetadata(BaseModel):
    type: Literal["request_received", "request_accepted", "request_rejected"]
    project_id: str
    project_title: str
    from_user_id: str
    from_user_name: str


NotificationMetadata = Annotated[Union[ChatMetadata, ProjectMetadata], Field(discriminator="type")]


class NotificationRecord(BaseModel):
    """In-app notification stored in the `notifications` collection (camelCase on disk)."""
    user_id: str
    type: str
    title: str
    body: str
    project_id: str
    project_title: str
    from_user_id: str
    from_user_name: str
    is_read: bool = False
    created_at: Optional[datetime] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DeviceToken(BaseModel):
    token: str
    platform: Optional[str] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DeliveryReport(BaseModel):
    success_count: int = 0
    failure_count: int = 0
    removed_tokens: List[str] = []
