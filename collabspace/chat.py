"""Project chat: messages are stored first, then republished live.

Storage is durable; the live republish is at-most-once and its failure is
only visible in ``side_effects['publish']``.
"""
import logging

from sqlalchemy import select

from collabspace.errors import ActionResult, NotAuthorized, ValidationFailed, action
from collabspace.models import Message, Project
from collabspace.projects import can_access, get_project
from collabspace.pubsub import CHAT_EVENTS, project_channel
from collabspace.utils import parse_datetime

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50
MAX_LIMIT = 100


class ChatRelay:
    def __init__(self, session, publisher):
        self.session = session
        self.publisher = publisher

    def _authorize(self, project_id, user_id):
        project = get_project(self.session, project_id)
        if not can_access(self.session, project, user_id):
            raise NotAuthorized("Not a member")
        return project

    @action("Failed to send message")
    def post(self, project_id, sender_id, content):
        content = (content or '').strip()
        if not project_id or not content:
            raise ValidationFailed("Project ID and content required")
        self._authorize(project_id, sender_id)

        message = Message(project_id=project_id, sender_id=sender_id, content=content)
        self.session.add(message)
        self.session.commit()
        payload = message.to_dict()

        published = self.publisher.publish(project_channel(project_id), CHAT_EVENTS['NEW_MESSAGE'], payload)
        if not published:
            logger.warning("Message %s stored but not delivered live", payload['id'])
        # "message" is the stored chat message here, not a status text
        return ActionResult(True, data={'message': payload}, side_effects={'publish': published}, status_code=201)

    @action("Failed to fetch messages")
    def list(self, project_id, user_id, limit=DEFAULT_LIMIT, before=None):
        if not project_id:
            raise ValidationFailed("Project ID required")
        try:
            limit = max(1, min(int(limit or DEFAULT_LIMIT), MAX_LIMIT))
        except (TypeError, ValueError):
            raise ValidationFailed("Limit must be a number")
        try:
            before = parse_datetime(before)
        except ValueError:
            raise ValidationFailed("before must be an ISO-8601 timestamp")

        self._authorize(project_id, user_id)

        stmt = select(Message).where(Message.project_id == project_id)
        if before is not None:
            stmt = stmt.where(Message.created_at < before)
        newest_first = self.session.execute(
            stmt.order_by(Message.created_at.desc(), Message.id.desc()).limit(limit)
        ).scalars().all()

        return ActionResult.ok(messages=[m.to_dict() for m in reversed(newest_first)])

    def can_subscribe(self, project_id, user_id):
        """Whether ``user_id`` may join the live channel of ``project_id``."""
        project = self.session.get(Project, project_id)
        return project is not None and can_access(self.session, project, user_id)
