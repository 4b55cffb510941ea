# file: controllers/events.py

import logging
from typing import Callable, Optional

from fastapi import APIRouter, Depends
from google.cloud.firestore import AsyncClient

from app.database.connection import get_db_provider
from app.models.events import MessageCreatedEvent, RequestCreatedEvent, RequestUpdatedEvent
from app.models.notification import DeliveryReport
from app.services.chat_notifier import ChatNotifier
from app.services.messaging import get_messenger
from app.services.project_notifier import ProjectNotifier
from app.services.push_delivery import PushDelivery
from app.services.token_store import TokenStore

logger = logging.getLogger(__name__)

router = APIRouter()

# Every event is acknowledged, whatever happened to the notification.
ACK = {"status": "ok"}


def _delivery(db: AsyncClient, messenger) -> PushDelivery:
    return PushDelivery(TokenStore(db), messenger)


def _log_report(kind: str, report: Optional[DeliveryReport]):
    if report is not None:
        logger.info(
            f"{kind} notification delivered: {report.success_count} sent, {report.failure_count} failed, "
            f"{len(report.removed_tokens)} token(s) removed"
        )


@router.post("/messages/created")
async def on_new_chat_message(
        event: MessageCreatedEvent,
        db_provider: Callable[[], AsyncClient] = Depends(get_db_provider),
        messenger=Depends(get_messenger),
):
    """Fires when conversations/{conversationId}/messages/{messageId} is created."""
    if not event.data:
        logger.info("No message data found")
        return ACK

    conversation_id = event.params.conversationId
    logger.info(f"New message in conversation {conversation_id} from {event.data.get('senderId')}")

    try:
        db = db_provider()
        report = await ChatNotifier(db, _delivery(db, messenger)).notify_new_message(conversation_id, event.data)
    except Exception:
        logger.exception("Error sending notification")
        return ACK

    _log_report("Chat", report)
    return ACK


@router.post("/requests/created")
async def on_contribution_request(
        event: RequestCreatedEvent,
        db_provider: Callable[[], AsyncClient] = Depends(get_db_provider),
        messenger=Depends(get_messenger),
):
    """Fires when projects/{projectId}/requests/{requestId} is created."""
    if not event.data:
        logger.info("No request data found")
        return ACK

    project_id = event.params.projectId
    logger.info(f"New contribution request for project {project_id} from {event.data.get('userId')}")

    try:
        db = db_provider()
        report = await ProjectNotifier(db, _delivery(db, messenger)).notify_request_created(project_id, event.data)
    except Exception:
        logger.exception("Error sending contribution request notification")
        return ACK

    _log_report("Contribution request", report)
    return ACK


@router.post("/requests/updated")
async def on_request_status_change(
        event: RequestUpdatedEvent,
        db_provider: Callable[[], AsyncClient] = Depends(get_db_provider),
        messenger=Depends(get_messenger),
):
    """Fires when projects/{projectId}/requests/{requestId} is updated."""
    if not event.before or not event.after:
        logger.info("No data found")
        return ACK

    try:
        db = db_provider()
        report = await ProjectNotifier(db, _delivery(db, messenger)).notify_status_change(
            event.params.projectId, event.before, event.after)
    except Exception:
        logger.exception("Error sending status change notification")
        return ACK

    _log_report("Status change", report)
    return ACK
