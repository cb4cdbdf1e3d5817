from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from collabspace import get_services
from collabspace.utils import current_user_id, json_body, respond

notification_bp = Blueprint('notifications', __name__)


@notification_bp.route('', methods=['GET'])
@jwt_required()
def list_notifications():
    return respond(get_services().notifications.list(current_user_id()))


# Mark one notification (or all of them) as read
@notification_bp.route('', methods=['PATCH'])
@jwt_required()
def mark_notifications_read():
    data = json_body()
    result = get_services().notifications.mark_read(
        current_user_id(), notification_id=data.get('notificationId'), mark_all=bool(data.get('markAll'))
    )
    return respond(result)


@notification_bp.route('', methods=['DELETE'])
@jwt_required()
def delete_notification():
    return respond(get_services().notifications.delete(current_user_id(), request.args.get('id', type=int)))
