"""Join-request lifecycle and team membership.

A request moves ``pending -> accepted`` or ``pending -> rejected`` and never
leaves a terminal state. Ownership is the project's ``owner_id``; the owner
is never a ``project_members`` row, so ``team_size_current`` is always
``1 + len(members)``.

Membership changes commit as a single unit of work. Notifications and emails
go out after the commit and are reported in ``side_effects``; their failure
never undoes the membership change.
"""
import logging

from sqlalchemy import case, select, update

from collabspace.errors import ActionResult, Conflict, NotAuthorized, NotFound, ValidationFailed, action
from collabspace.models import JoinRequest, Project, ProjectMember, ProjectStatus, RequestStatus, User
from collabspace.projects import get_membership, get_project, require_complete_profile
from collabspace.utils import utcnow

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = (RequestStatus.PENDING.value, RequestStatus.ACCEPTED.value)


class JoinRequestManager:
    def __init__(self, session, notifications, mailer):
        self.session = session
        self.notifications = notifications
        self.mailer = mailer

    def _get_pending(self, request_id):
        join_request = self.session.get(JoinRequest, request_id)
        if join_request is None or join_request.status != RequestStatus.PENDING.value:
            raise NotFound("Request not found or already processed")
        return join_request

    @action("Failed to send join request")
    def request(self, project_id, user_id, message=None):
        requester = require_complete_profile(
            self.session, user_id, "Complete your profile to at least 80% before joining projects"
        )

        project = get_project(self.session, project_id)
        if project.status != ProjectStatus.OPEN.value:
            raise ValidationFailed("This project is no longer accepting members")
        if project.owner_id == user_id:
            raise ValidationFailed("You can't join your own project")
        if get_membership(self.session, project_id, user_id) is not None:
            raise Conflict("You're already a member of this project")

        existing = self.session.execute(
            select(JoinRequest.status).where(
                JoinRequest.project_id == project_id,
                JoinRequest.user_id == user_id,
                JoinRequest.status.in_(ACTIVE_STATUSES),
            ).limit(1)
        ).scalar_one_or_none()
        if existing == RequestStatus.PENDING.value:
            raise Conflict("You've already requested to join this project")
        if existing == RequestStatus.ACCEPTED.value:
            raise Conflict("You were previously accepted into this project")

        join_request = JoinRequest(
            project_id=project_id,
            user_id=user_id,
            message=(message or '').strip() or None,
            status=RequestStatus.PENDING.value,
        )
        self.session.add(join_request)
        self.session.commit()
        request_id = join_request.id
        logger.info("User %s requested to join project %s (request %s)", user_id, project_id, request_id)

        notified = self.notifications.notify_join_request(project.owner_id, project, requester, request_id)
        emailed = self.mailer.send_join_request(project.owner.email, project.title, requester.display_name)
        return ActionResult.ok(
            "Join request sent! The project owner will review your request.",
            status_code=201,
            side_effects={'notification': notified, 'email': emailed},
            request_id=request_id,
        )

    @action("Failed to approve request")
    def approve(self, request_id, owner_id):
        join_request = self._get_pending(request_id)
        project = join_request.project
        if project.owner_id != owner_id:
            raise NotAuthorized()

        requester_id = join_request.user_id
        join_request.status = RequestStatus.ACCEPTED.value
        join_request.resolved_at = utcnow()
        if get_membership(self.session, project.id, requester_id) is None:
            self.session.add(ProjectMember(project_id=project.id, user_id=requester_id, role='member'))
            self.session.execute(
                update(Project)
                .where(Project.id == project.id)
                .values(team_size_current=Project.team_size_current + 1)
            )
        self.session.commit()
        logger.info("Request %s accepted into project %s", request_id, project.id)

        notified = self.notifications.notify_request_accepted(requester_id, project)
        return ActionResult.ok("Request accepted", side_effects={'notification': notified})

    @action("Failed to reject request")
    def reject(self, request_id, owner_id):
        join_request = self._get_pending(request_id)
        project = join_request.project
        if project.owner_id != owner_id:
            raise NotAuthorized()

        requester_id = join_request.user_id
        join_request.status = RequestStatus.REJECTED.value
        join_request.resolved_at = utcnow()
        self.session.commit()
        logger.info("Request %s rejected for project %s", request_id, project.id)

        notified = self.notifications.notify_request_rejected(requester_id, project)
        return ActionResult.ok("Request rejected", side_effects={'notification': notified})

    def resolve(self, request_id, owner_id, status):
        if status == RequestStatus.ACCEPTED.value:
            return self.approve(request_id, owner_id)
        if status == RequestStatus.REJECTED.value:
            return self.reject(request_id, owner_id)
        return ActionResult.fail('Invalid status. Use "accepted" or "rejected".', 400)

    @action("Failed to remove member")
    def remove_member(self, project_id, owner_id, member_id):
        project = get_project(self.session, project_id)
        if project.owner_id != owner_id:
            raise NotAuthorized()
        if member_id in (owner_id, project.owner_id):
            raise ValidationFailed("Cannot remove owner")

        membership = get_membership(self.session, project_id, member_id)
        if membership is None:
            raise NotFound("Member not found")

        self.session.delete(membership)
        self.session.execute(
            update(Project)
            .where(Project.id == project_id)
            .values(
                team_size_current=case(
                    (Project.team_size_current > 1, Project.team_size_current - 1),
                    else_=1,
                )
            )
        )
        self.session.commit()
        logger.info("User %s removed from project %s", member_id, project_id)

        notified = self.notifications.notify_member_removed(member_id, project)
        return ActionResult.ok("Member removed", side_effects={'notification': notified})

    @action("Failed to fetch join requests")
    def pending_for_project(self, project_id, owner_id):
        project = get_project(self.session, project_id)
        if project.owner_id != owner_id:
            raise NotAuthorized()
        requests = self.session.execute(
            select(JoinRequest)
            .where(JoinRequest.project_id == project_id, JoinRequest.status == RequestStatus.PENDING.value)
            .order_by(JoinRequest.created_at.desc())
        ).scalars().all()
        return ActionResult.ok(requests=[r.to_dict() for r in requests])

    @action("Failed to fetch pending requests")
    def pending_for_owner(self, owner_id):
        requests = self.session.execute(
            select(JoinRequest)
            .join(Project, Project.id == JoinRequest.project_id)
            .where(Project.owner_id == owner_id, JoinRequest.status == RequestStatus.PENDING.value)
            .order_by(JoinRequest.created_at.desc())
        ).scalars().all()
        return ActionResult.ok(requests=[r.to_dict() for r in requests])

    @action("Failed to fetch join requests")
    def sent_by(self, user_id):
        if self.session.get(User, user_id) is None:
            raise NotFound("User not found")
        requests = self.session.execute(
            select(JoinRequest).where(JoinRequest.user_id == user_id).order_by(JoinRequest.created_at.desc())
        ).scalars().all()
        return ActionResult.ok(requests=[r.to_dict() for r in requests])
