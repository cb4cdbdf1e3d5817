import logging

from sqlalchemy import select

from collabspace.completion import is_profile_complete, score_user
from collabspace.errors import ActionResult, NotAuthorized, NotFound, ValidationFailed, action
from collabspace.models import Project, ProjectMember, ProjectStatus, User
from collabspace.utils import parse_datetime, parse_list

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 50
PROJECT_STATUSES = {status.value for status in ProjectStatus}


def get_project(session, project_id):
    project = session.get(Project, project_id)
    if project is None:
        raise NotFound("Project not found")
    return project


def get_membership(session, project_id, user_id):
    return session.execute(
        select(ProjectMember).where(ProjectMember.project_id == project_id, ProjectMember.user_id == user_id)
    ).scalar_one_or_none()


def can_access(session, project, user_id):
    """Owners and members may read and post in a project."""
    return project.owner_id == user_id or get_membership(session, project.id, user_id) is not None


def member_ids(session, project_id):
    return list(session.execute(select(ProjectMember.user_id).where(ProjectMember.project_id == project_id)).scalars())


def require_complete_profile(session, user_id, error):
    """Re-score the user from current fields; raise ``error`` below the threshold."""
    user = session.get(User, user_id)
    if user is None or not is_profile_complete(score_user(user)):
        raise ValidationFailed(error)
    return user


class ProjectService:
    def __init__(self, session, notifications):
        self.session = session
        self.notifications = notifications

    @action("Failed to create project")
    def create(self, owner_id, data):
        require_complete_profile(
            self.session, owner_id, "Complete your profile to at least 80% before creating a project"
        )

        title = (data.get('title') or '').strip()
        description = (data.get('description') or '').strip()
        project_type = (data.get('project_type') or '').strip()
        if not title or not description or not project_type:
            raise ValidationFailed("Title, description, and project type are required")
        if len(title) < 5:
            raise ValidationFailed("Title must be at least 5 characters")
        if len(description) < 20:
            raise ValidationFailed("Description must be at least 20 characters")

        try:
            team_size_max = int(data.get('team_size_max') or 5)
        except (TypeError, ValueError):
            raise ValidationFailed("Team size must be a number")
        if team_size_max < 1:
            raise ValidationFailed("Team size must be at least 1")
        try:
            deadline = parse_datetime(data.get('deadline'))
        except ValueError:
            raise ValidationFailed("Deadline must be an ISO-8601 date")

        project = Project(
            owner_id=owner_id,
            title=title,
            description=description,
            project_type=project_type,
            skills_required=parse_list(data.get('skills_required')),
            roles_needed=parse_list(data.get('roles_needed')),
            team_size_max=team_size_max,
            team_size_current=1,
            commitment_level=data.get('commitment_level') or 'flexible',
            deadline=deadline,
            github_url=data.get('github_url') or None,
            figma_url=data.get('figma_url') or None,
            live_url=data.get('live_url') or None,
            status=ProjectStatus.OPEN.value,
        )
        self.session.add(project)
        self.session.commit()
        logger.info("User %s created project %s", owner_id, project.id)
        return ActionResult.ok("Project created successfully", status_code=201, project_id=project.id)

    @action("Failed to fetch project")
    def get(self, project_id):
        return ActionResult.ok(project=get_project(self.session, project_id).to_dict())

    @action("Failed to fetch projects")
    def list_owned(self, user_id):
        projects = self.session.execute(
            select(Project).where(Project.owner_id == user_id).order_by(Project.created_at.desc())
        ).scalars().all()
        return ActionResult.ok(projects=[p.to_dict() for p in projects])

    @action("Failed to fetch joined projects")
    def list_joined(self, user_id):
        rows = self.session.execute(
            select(Project, ProjectMember.role)
            .join(ProjectMember, ProjectMember.project_id == Project.id)
            .where(ProjectMember.user_id == user_id)
            .order_by(ProjectMember.joined_at.desc())
        ).all()
        return ActionResult.ok(projects=[dict(p.to_dict(), role=role) for p, role in rows])

    @action("Failed to fetch project members")
    def members(self, project_id):
        project = get_project(self.session, project_id)
        memberships = self.session.execute(
            select(ProjectMember).where(ProjectMember.project_id == project_id).order_by(ProjectMember.joined_at)
        ).scalars().all()

        members = [dict(project.owner.to_public_dict(), role='owner', joined_at=project.created_at.isoformat())]
        members += [
            dict(m.user.to_public_dict(), role=m.role or 'member', joined_at=m.joined_at.isoformat())
            for m in memberships
        ]
        return ActionResult.ok(members=members)

    @action("Search failed")
    def search(self, q='', project_type=''):
        projects = self.session.execute(
            select(Project)
            .where(Project.status == ProjectStatus.OPEN.value)
            .order_by(Project.created_at.desc(), Project.id.desc())
            .limit(SEARCH_LIMIT)
        ).scalars().all()

        # Filter in memory so skills (a JSON list) match the same way as text
        if q:
            needle = q.lower()
            projects = [
                p for p in projects
                if needle in p.title.lower()
                or needle in p.description.lower()
                or any(needle in skill.lower() for skill in (p.skills_required or []))
            ]
        if project_type and project_type != 'all':
            projects = [p for p in projects if p.project_type == project_type]

        return ActionResult.ok(projects=[p.to_dict() for p in projects])

    @action("Failed to update project status")
    def update_status(self, project_id, user_id, status):
        if status not in PROJECT_STATUSES:
            raise ValidationFailed(f"Invalid status. Use one of: {', '.join(sorted(PROJECT_STATUSES))}")

        project = get_project(self.session, project_id)
        if project.owner_id != user_id:
            raise NotAuthorized()
        if project.status == status:
            return ActionResult.ok("Status unchanged", project=project.to_dict())

        project.status = status
        self.session.commit()

        notified = self.notifications.notify_project_update(
            member_ids(self.session, project_id), project, f'Project status changed to "{status}".'
        )
        return ActionResult.ok(
            "Project status updated", side_effects={'notification': notified}, project=project.to_dict()
        )
