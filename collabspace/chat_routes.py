import logging

from flask import Blueprint, request
from flask_jwt_extended import jwt_required
from flask_jwt_extended.exceptions import JWTExtendedException
from flask_socketio import emit, join_room, leave_room
from jwt.exceptions import PyJWTError

from collabspace import get_services
from collabspace.pubsub import project_channel
from collabspace.utils import current_user_id, get_user_id_from_token, json_body, respond

chat_bp = Blueprint('chat', __name__)
logger = logging.getLogger(__name__)


# Route to fetch chat history
@chat_bp.route('', methods=['GET'])
@jwt_required()
def get_messages():
    result = get_services().chat.list(
        request.args.get('projectId', type=int),
        current_user_id(),
        limit=request.args.get('limit', 50),
        before=request.args.get('before'),
    )
    return respond(result)


@chat_bp.route('', methods=['POST'])
@jwt_required()
def post_message():
    data = json_body()
    project_id = data.get('projectId')
    if project_id is not None:
        try:
            project_id = int(project_id)
        except (TypeError, ValueError):
            project_id = None
    return respond(get_services().chat.post(project_id, current_user_id(), data.get('content')))


def _socket_user_id(data):
    token = data.get('token') if isinstance(data, dict) else None
    if not token:
        return None
    try:
        return get_user_id_from_token(token)
    except (JWTExtendedException, PyJWTError, ValueError):
        return None


def _socket_project_id(data):
    try:
        return int(data.get('project_id') if isinstance(data, dict) else None)
    except (TypeError, ValueError):
        return None


# WebSocket events for real-time messaging
def handle_join(data):
    user_id = _socket_user_id(data)
    if user_id is None:
        emit('error', {'message': 'Not authenticated'})
        return
    project_id = _socket_project_id(data)
    if project_id is None:
        emit('error', {'message': 'Invalid project'})
        return
    if not get_services().chat.can_subscribe(project_id, user_id):
        emit('error', {'message': 'Not authorized'})
        return

    room = project_channel(project_id)
    join_room(room)
    logger.debug("User %s joined %s", user_id, room)
    emit('status', {'message': f"User {user_id} joined room: {room}"}, to=room)


def handle_leave(data):
    project_id = _socket_project_id(data)
    if project_id is None:
        emit('error', {'message': 'Invalid project'})
        return
    room = project_channel(project_id)
    leave_room(room)
    logger.debug("Client left %s", room)


def register_socket_handlers(socketio):
    """Attach the room handlers to the server created by ``socketio.init_app``."""
    socketio.on_event('join', handle_join)
    socketio.on_event('leave', handle_leave)
