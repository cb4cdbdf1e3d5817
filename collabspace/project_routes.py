from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from collabspace import get_services
from collabspace.utils import current_user_id, json_body, respond

project_bp = Blueprint('projects', __name__)


# Create a project
@project_bp.route('', methods=['POST'])
@jwt_required()
def create_project():
    return respond(get_services().projects.create(current_user_id(), json_body()))


@project_bp.route('/search', methods=['GET'])
def search_projects():
    result = get_services().projects.search(request.args.get('q', ''), request.args.get('type', ''))
    return respond(result)


# projects i own
@project_bp.route('/mine', methods=['GET'])
@jwt_required()
def my_projects():
    return respond(get_services().projects.list_owned(current_user_id()))


# projects i joined as a member
@project_bp.route('/joined', methods=['GET'])
@jwt_required()
def joined_projects():
    return respond(get_services().projects.list_joined(current_user_id()))


@project_bp.route('/<int:project_id>', methods=['GET'])
def view_project(project_id):
    return respond(get_services().projects.get(project_id))


@project_bp.route('/<int:project_id>/status', methods=['PUT'])
@jwt_required()
def update_project_status(project_id):
    status = json_body().get('status')
    return respond(get_services().projects.update_status(project_id, current_user_id(), status))


@project_bp.route('/<int:project_id>/members', methods=['GET'])
@jwt_required()
def project_members(project_id):
    return respond(get_services().projects.members(project_id))


@project_bp.route('/<int:project_id>/members/<int:member_id>', methods=['DELETE'])
@jwt_required()
def remove_member(project_id, member_id):
    return respond(get_services().join_requests.remove_member(project_id, current_user_id(), member_id))


# request to join
@project_bp.route('/<int:project_id>/requests', methods=['POST'])
@jwt_required()
def request_to_join(project_id):
    message = json_body().get('message')
    return respond(get_services().join_requests.request(project_id, current_user_id(), message))


@project_bp.route('/<int:project_id>/requests', methods=['GET'])
@jwt_required()
def project_requests(project_id):
    return respond(get_services().join_requests.pending_for_project(project_id, current_user_id()))


@project_bp.route('/requests/sent', methods=['GET'])
@jwt_required()
def requests_i_sent():
    return respond(get_services().join_requests.sent_by(current_user_id()))


@project_bp.route('/requests/received', methods=['GET'])
@jwt_required()
def requests_sent_to_me():
    return respond(get_services().join_requests.pending_for_owner(current_user_id()))


# accept or reject a request
@project_bp.route('/requests/<int:request_id>', methods=['PUT'])
@jwt_required()
def handle_join_request(request_id):
    status = json_body().get('status')  # 'accepted' or 'rejected'
    return respond(get_services().join_requests.resolve(request_id, current_user_id(), status))
