from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from collabspace import get_services
from collabspace.utils import current_user_id, json_body, respond

profile_bp = Blueprint('profile', __name__)


@profile_bp.route('/view', methods=['GET'])
@jwt_required()
def view_profile():
    return respond(get_services().profiles.view(current_user_id()))


@profile_bp.route('/update', methods=['PUT'])
@jwt_required()
def update_profile():
    return respond(get_services().profiles.update(current_user_id(), json_body()))


@profile_bp.route('/handle-available', methods=['GET'])
@jwt_required()
def handle_available():
    return respond(get_services().profiles.handle_available(request.args.get('handle', ''), current_user_id()))


@profile_bp.route('/password', methods=['PUT'])
@jwt_required()
def set_password():
    data = json_body()
    result = get_services().profiles.set_password(
        current_user_id(), data.get('new_password'), data.get('current_password')
    )
    return respond(result)
