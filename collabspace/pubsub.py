"""Project-scoped chat channels on Socket.IO."""
import logging

logger = logging.getLogger(__name__)

CHAT_EVENTS = {
    'NEW_MESSAGE': 'new-message',
    'MESSAGE_DELETED': 'message-deleted',
    'TYPING': 'typing',
    'MEMBER_JOINED': 'member-joined',
    'MEMBER_LEFT': 'member-left',
}


def project_channel(project_id):
    return f"project-{project_id}"


class ChatPublisher:
    """Fire-and-forget publisher over a ``flask_socketio.SocketIO`` server."""

    def __init__(self, socketio):
        self.socketio = socketio

    def publish(self, channel, event, payload):
        try:
            self.socketio.emit(event, payload, to=channel)
        except Exception as e:
            logger.warning("Failed to publish %s on %s: %s", event, channel, e)
            return False
        return True
