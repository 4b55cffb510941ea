# file: services/project_notifier.py

import logging
from typing import Any, Dict, Optional

from google.cloud import firestore

from app.database.connection import NOTIFICATIONS, PROJECTS
from app.models.notification import (
    REQUEST_ACCEPTED,
    REQUEST_RECEIVED,
    REQUEST_REJECTED,
    DeliveryReport,
    NotificationRecord,
    ProjectMetadata,
    PushContent,
)
from app.services.lookups import get_display_name, get_document
from app.services.push_delivery import PushDelivery

logger = logging.getLogger(__name__)

PENDING = "pending"

# status -> (notification type, title, body template)
STATUS_NOTIFICATIONS = {
    "accepted": (REQUEST_ACCEPTED, "Request Accepted", 'Your request to join "{title}" was accepted'),
    "rejected": (REQUEST_REJECTED, "Request Declined", 'Your request to join "{title}" was declined'),
}


def is_decision(before_status: Optional[str], after_status: Optional[str]) -> bool:
    """Only a pending request being accepted or rejected is worth a notification."""
    return before_status == PENDING and after_status in STATUS_NOTIFICATIONS


class ProjectNotifier:
    """
    Notifies project owners about incoming contribution requests, and
    requesters about the owner's decision. Each notification is stored in
    the `notifications` collection before it is pushed.
    """

    def __init__(self, db: firestore.AsyncClient, delivery: PushDelivery):
        self.db = db
        self.delivery = delivery

    async def _get_project(self, project_id: str) -> Optional[Dict[str, Any]]:
        project = await get_document(self.db, PROJECTS, project_id)
        if project is None:
            logger.info(f"Project {project_id} not found")
            return None
        if not project.get("uid"):
            logger.info(f"Project {project_id} has no owner")
            return None
        return project

    async def create_record(self, record: NotificationRecord) -> None:
        document = record.model_dump(by_alias=True, exclude={"created_at"})
        document["createdAt"] = firestore.SERVER_TIMESTAMP
        await self.db.collection(NOTIFICATIONS).add(document)
        logger.info(f"Created notification document for user: {record.user_id}")

    async def send_to_user(self, recipient_id: str, content: PushContent, metadata: ProjectMetadata) -> DeliveryReport:
        await self.create_record(NotificationRecord(
            user_id=recipient_id,
            type=metadata.type,
            title=content.title,
            body=content.body,
            project_id=metadata.project_id,
            project_title=metadata.project_title,
            from_user_id=metadata.from_user_id,
            from_user_name=metadata.from_user_name,
        ))
        return await self.delivery.deliver(recipient_id, content, metadata)

    async def notify_request_created(self, project_id: str, request: Dict[str, Any]) -> Optional[DeliveryReport]:
        requester_id = request.get("userId")
        if not requester_id:
            logger.info("Request has no requester, skipping")
            return None

        project = await self._get_project(project_id)
        if project is None:
            return None

        owner_id = str(project["uid"])
        project_title = str(project.get("title") or "a project")

        if owner_id == requester_id:
            logger.info("Owner requested to own project, skipping notification")
            return None

        requester_name = await get_display_name(self.db, requester_id, default="Someone")

        report = await self.send_to_user(
            owner_id,
            PushContent(
                title="New Contribution Request",
                body=f'{requester_name} wants to join "{project_title}"',
            ),
            ProjectMetadata(
                type=REQUEST_RECEIVED,
                project_id=project_id,
                project_title=project_title,
                from_user_id=requester_id,
                from_user_name=requester_name,
            ),
        )
        logger.info(f"Notification sent to project owner: {owner_id}")
        return report

    async def notify_status_change(
            self,
            project_id: str,
            before: Dict[str, Any],
            after: Dict[str, Any],
    ) -> Optional[DeliveryReport]:
        before_status = before.get("status")
        after_status = after.get("status")
        if not is_decision(before_status, after_status):
            logger.info(f"Status change {before_status} -> {after_status} needs no notification, skipping")
            return None

        requester_id = after.get("userId")
        if not requester_id:
            logger.info("Request has no requester, skipping")
            return None

        logger.info(f"Request status changed to {after_status} for user {requester_id}")

        project = await self._get_project(project_id)
        if project is None:
            return None

        owner_id = str(project["uid"])
        project_title = str(project.get("title") or "a project")
        owner_name = await get_display_name(self.db, owner_id, default="The project owner")

        notification_type, title, body = STATUS_NOTIFICATIONS[after_status]
        report = await self.send_to_user(
            requester_id,
            PushContent(title=title, body=body.format(title=project_title)),
            ProjectMetadata(
                type=notification_type,
                project_id=project_id,
                project_title=project_title,
                from_user_id=owner_id,
                from_user_name=owner_name,
            ),
        )
        logger.info(f"Notification sent to requester: {requester_id}")
        return report
