"""Per-user notification feed.

Inserts are a best-effort side channel: ``create`` commits on its own and
reports failure as ``False`` so the action that triggered it keeps its
primary effect.
"""
import logging

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError

from collabspace.errors import ActionResult, ValidationFailed, action
from collabspace.models import Notification, NotificationType

logger = logging.getLogger(__name__)

FEED_LIMIT = 20


class NotificationSink:
    def __init__(self, session):
        self.session = session

    def create(self, user_id, type, title, message=None, metadata=None):
        try:
            self.session.add(Notification(user_id=user_id, type=type, title=title, message=message, meta=metadata))
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.warning("Failed to create %s notification for user %s: %s", type, user_id, e)
            return False
        return True

    def notify_join_request(self, owner_id, project, requester, request_id):
        return self.create(
            owner_id,
            NotificationType.JOIN_REQUEST.value,
            "New join request",
            f'{requester.display_name} wants to join "{project.title}"',
            {'projectId': project.id, 'requesterId': requester.id, 'requestId': request_id},
        )

    def notify_request_accepted(self, user_id, project):
        return self.create(
            user_id,
            NotificationType.REQUEST_ACCEPTED.value,
            "Request Accepted!",
            f'Your request to join "{project.title}" has been approved!',
            {'projectId': project.id},
        )

    def notify_request_rejected(self, user_id, project):
        return self.create(
            user_id,
            NotificationType.REQUEST_REJECTED.value,
            "Request Declined",
            f'Your request to join "{project.title}" was not accepted.',
            {'projectId': project.id},
        )

    def notify_member_removed(self, user_id, project):
        return self.create(
            user_id,
            NotificationType.PROJECT_UPDATE.value,
            "Removed from Project",
            f'You have been removed from "{project.title}".',
            {'projectId': project.id},
        )

    def notify_project_update(self, member_ids, project, update_message):
        return all([
            self.create(
                user_id,
                NotificationType.PROJECT_UPDATE.value,
                f'Update in "{project.title}"',
                update_message,
                {'projectId': project.id},
            )
            for user_id in member_ids
        ])

    def notify_new_message(self, member_ids, project, sender):
        return all([
            self.create(
                user_id,
                NotificationType.NEW_MESSAGE.value,
                f'New message in "{project.title}"',
                f"{sender.display_name} sent a message.",
                {'projectId': project.id},
            )
            for user_id in member_ids
        ])

    @action("Failed to fetch notifications")
    def list(self, user_id):
        notifications = self.session.execute(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(FEED_LIMIT)
        ).scalars().all()
        unread_count = sum(1 for n in notifications if not n.read)
        return ActionResult.ok(notifications=[n.to_dict() for n in notifications], unreadCount=unread_count)

    @action("Failed to update notifications")
    def mark_read(self, user_id, notification_id=None, mark_all=False):
        stmt = update(Notification).where(Notification.user_id == user_id, Notification.read.is_(False))
        if not mark_all:
            if notification_id is None:
                raise ValidationFailed("Notification ID or markAll required")
            stmt = stmt.where(Notification.id == notification_id)
        self.session.execute(stmt.values(read=True))
        self.session.commit()
        return ActionResult.ok()

    @action("Failed to delete notification")
    def delete(self, user_id, notification_id):
        if notification_id is None:
            raise ValidationFailed("Notification ID required")
        self.session.execute(
            delete(Notification).where(Notification.id == notification_id, Notification.user_id == user_id)
        )
        self.session.commit()
        return ActionResult.ok()
