from enum import Enum

from collabspace import db
from collabspace.utils import utcnow


class ProjectStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CLOSED = "closed"


class RequestStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class OtpPurpose(str, Enum):
    EMAIL_VERIFICATION = "email_verification"
    PASSWORD_RESET = "password_reset"


class NotificationType(str, Enum):
    JOIN_REQUEST = "join_request"
    REQUEST_ACCEPTED = "request_accepted"
    REQUEST_REJECTED = "request_rejected"
    NEW_MESSAGE = "new_message"
    PROJECT_UPDATE = "project_update"


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    email_verified = db.Column(db.DateTime, nullable=True)
    name = db.Column(db.String(255), nullable=True)
    image = db.Column(db.Text, nullable=True)
    password_hash = db.Column(db.Text, nullable=True)
    handle = db.Column(db.String(30), nullable=True, unique=True, index=True)
    first_name = db.Column(db.String(100), nullable=True)
    last_name = db.Column(db.String(100), nullable=True)
    bio = db.Column(db.Text, nullable=True)
    profession = db.Column(db.String(100), nullable=True)
    location = db.Column(db.String(100), nullable=True)
    skills = db.Column(db.JSON, nullable=False, default=list)
    github_url = db.Column(db.Text, nullable=True)
    linkedin_url = db.Column(db.Text, nullable=True)
    portfolio_url = db.Column(db.Text, nullable=True)
    availability_hours = db.Column(db.Integer, nullable=True)
    is_new_user = db.Column(db.Boolean, nullable=False, default=True)
    profile_complete = db.Column(db.Boolean, nullable=False, default=False)
    profile_completion = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def display_name(self):
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        return self.name or self.email

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'email_verified': self.email_verified.isoformat() if self.email_verified else None,
            'name': self.display_name,
            'image': self.image,
            'handle': self.handle,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'bio': self.bio,
            'profession': self.profession,
            'location': self.location,
            'skills': self.skills or [],
            'github_url': self.github_url,
            'linkedin_url': self.linkedin_url,
            'portfolio_url': self.portfolio_url,
            'availability_hours': self.availability_hours,
            'is_new_user': self.is_new_user,
            'profile_complete': self.profile_complete,
            'profile_completion': self.profile_completion,
            'has_password': self.password_hash is not None,
        }

    def to_public_dict(self):
        return {
            'id': self.id,
            'name': self.display_name,
            'handle': self.handle,
            'image': self.image,
            'profession': self.profession,
            'skills': self.skills or [],
        }


class Account(db.Model):
    """OAuth identity linked to a user."""

    __tablename__ = 'accounts'
    __table_args__ = (db.UniqueConstraint('provider', 'provider_account_id', name='uq_account_provider'),)

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    type = db.Column(db.String(50), nullable=False, default='oauth')
    provider = db.Column(db.String(50), nullable=False)
    provider_account_id = db.Column(db.String(255), nullable=False)
    access_token = db.Column(db.Text, nullable=True)
    refresh_token = db.Column(db.Text, nullable=True)
    id_token = db.Column(db.Text, nullable=True)
    expires_at = db.Column(db.Integer, nullable=True)
    token_type = db.Column(db.String(50), nullable=True)
    scope = db.Column(db.Text, nullable=True)


class VerificationToken(db.Model):
    """Link-based email verification token (legacy path)."""

    __tablename__ = 'verification_tokens'

    identifier = db.Column(db.String(255), primary_key=True)
    token = db.Column(db.String(255), primary_key=True, unique=True)
    expires = db.Column(db.DateTime, nullable=False)


class OtpToken(db.Model):
    __tablename__ = 'otp_tokens'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, index=True)
    otp = db.Column(db.String(6), nullable=False)
    type = db.Column(db.String(50), nullable=False)
    expires = db.Column(db.DateTime, nullable=False)
    used = db.Column(db.Boolean, nullable=False, default=False)
    attempts = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)


class Project(db.Model):
    __tablename__ = 'projects'

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    project_type = db.Column(db.String(50), nullable=False)
    skills_required = db.Column(db.JSON, nullable=False, default=list)
    roles_needed = db.Column(db.JSON, nullable=False, default=list)
    team_size_max = db.Column(db.Integer, nullable=False, default=5)
    # owner + accepted members
    team_size_current = db.Column(db.Integer, nullable=False, default=1)
    deadline = db.Column(db.DateTime, nullable=True)
    commitment_level = db.Column(db.String(50), nullable=True)
    status = db.Column(db.String(20), nullable=False, default=ProjectStatus.OPEN.value, index=True)
    github_url = db.Column(db.Text, nullable=True)
    figma_url = db.Column(db.Text, nullable=True)
    live_url = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    owner = db.relationship('User', lazy='joined')

    def to_dict(self):
        return {
            'id': self.id,
            'owner_id': self.owner_id,
            'owner_name': self.owner.display_name if self.owner else None,
            'owner_handle': self.owner.handle if self.owner else None,
            'title': self.title,
            'description': self.description,
            'project_type': self.project_type,
            'skills_required': self.skills_required or [],
            'roles_needed': self.roles_needed or [],
            'team_size_max': self.team_size_max,
            'team_size_current': self.team_size_current,
            'deadline': self.deadline.isoformat() if self.deadline else None,
            'commitment_level': self.commitment_level,
            'status': self.status,
            'github_url': self.github_url,
            'figma_url': self.figma_url,
            'live_url': self.live_url,
            'created_at': self.created_at.isoformat(),
        }


class ProjectMember(db.Model):
    __tablename__ = 'project_members'
    __table_args__ = (db.UniqueConstraint('project_id', 'user_id', name='uq_project_member'),)

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    role = db.Column(db.String(100), nullable=True, default='member')
    joined_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    user = db.relationship('User', lazy='joined')


class JoinRequest(db.Model):
    __tablename__ = 'join_requests'

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    message = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(20), nullable=False, default=RequestStatus.PENDING.value)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    resolved_at = db.Column(db.DateTime, nullable=True)

    project = db.relationship('Project', lazy='joined')
    user = db.relationship('User', lazy='joined')

    def to_dict(self):
        return {
            'id': self.id,
            'project_id': self.project_id,
            'project_title': self.project.title if self.project else None,
            'requester': self.user.to_public_dict() if self.user else None,
            'message': self.message,
            'status': self.status,
            'created_at': self.created_at.isoformat(),
            'resolved_at': self.resolved_at.isoformat() if self.resolved_at else None,
        }


class Notification(db.Model):
    __tablename__ = 'notifications'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    type = db.Column(db.String(50), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=True)
    # "metadata" is reserved on declarative models
    meta = db.Column('metadata', db.JSON, nullable=True)
    read = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'type': self.type,
            'title': self.title,
            'message': self.message,
            'metadata': self.meta,
            'read': self.read,
            'created_at': self.created_at.isoformat(),
        }


class Message(db.Model):
    __tablename__ = 'messages'

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False, index=True)
    sender_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)

    sender = db.relationship('User', lazy='joined')

    def to_dict(self):
        return {
            'id': self.id,
            'project_id': self.project_id,
            'content': self.content,
            'created_at': self.created_at.isoformat(),
            'sender_id': self.sender_id,
            'sender_name': self.sender.display_name if self.sender else None,
            'sender_handle': self.sender.handle if self.sender else None,
            'sender_image': self.sender.image if self.sender else None,
        }
