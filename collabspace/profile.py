import logging

from sqlalchemy import select

from collabspace.auth import MIN_PASSWORD_LENGTH, PASSWORD_TOO_SHORT, check_password, handle_taken, hash_password
from collabspace.completion import refresh_completion
from collabspace.errors import ActionResult, Conflict, NotFound, ValidationFailed, action
from collabspace.models import Project, ProjectMember, User
from collabspace.utils import is_valid_handle, parse_list, slugify_handle

logger = logging.getLogger(__name__)

TEXT_FIELDS = ('first_name', 'last_name', 'bio', 'profession', 'location', 'github_url', 'linkedin_url', 'portfolio_url')


class ProfileService:
    def __init__(self, session):
        self.session = session

    def _get_user(self, user_id):
        user = self.session.get(User, user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    @action("Failed to fetch profile")
    def view(self, user_id):
        user = self._get_user(user_id)
        owned = self.session.execute(
            select(Project).where(Project.owner_id == user_id).order_by(Project.created_at.desc())
        ).scalars().all()
        joined = self.session.execute(
            select(Project, ProjectMember.role)
            .join(ProjectMember, ProjectMember.project_id == Project.id)
            .where(ProjectMember.user_id == user_id)
            .order_by(ProjectMember.joined_at.desc())
        ).all()

        projects = [dict(p.to_dict(), role='owner') for p in owned]
        projects += [dict(p.to_dict(), role=role or 'member') for p, role in joined]
        return ActionResult.ok(profile=user.to_dict(), projects=projects)

    @action("Failed to update profile")
    def update(self, user_id, data):
        """Apply profile edits and recompute the completion score.

        Only keys present in ``data`` are changed; an empty string clears a
        text field.
        """
        user = self._get_user(user_id)

        if data.get('handle'):
            handle = slugify_handle(data['handle'])
            if not is_valid_handle(handle):
                raise ValidationFailed("Invalid handle format")
            if handle_taken(self.session, handle, exclude_user_id=user_id):
                raise Conflict("This handle is already taken")
            user.handle = handle

        for field in TEXT_FIELDS:
            if field in data:
                value = (data.get(field) or '').strip()
                setattr(user, field, value or None)

        if user.first_name and user.last_name:
            user.name = f"{user.first_name} {user.last_name}"
        if 'skills' in data:
            user.skills = parse_list(data.get('skills'))
        if 'availability_hours' in data:
            try:
                user.availability_hours = int(data.get('availability_hours') or 0) or None
            except (TypeError, ValueError):
                raise ValidationFailed("Availability must be a number of hours")

        score = refresh_completion(user)
        user.is_new_user = False
        self.session.commit()
        logger.debug("Profile %s updated, completion %s", user_id, score)
        return ActionResult.ok("Profile updated successfully", profile=user.to_dict())

    @action("Failed to check handle")
    def handle_available(self, handle, user_id=None):
        cleaned = slugify_handle(handle)
        available = is_valid_handle(cleaned) and not handle_taken(self.session, cleaned, exclude_user_id=user_id)
        return ActionResult.ok(handle=cleaned, available=available)

    @action("Failed to update password")
    def set_password(self, user_id, new_password, current_password=None):
        if not new_password or len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationFailed(PASSWORD_TOO_SHORT)

        user = self._get_user(user_id)
        if user.password_hash:
            if not current_password:
                raise ValidationFailed("Current password is required")
            if not check_password(user.password_hash, current_password):
                raise ValidationFailed("Current password is incorrect")

        user.password_hash = hash_password(new_password)
        self.session.commit()
        return ActionResult.ok("Password updated")
