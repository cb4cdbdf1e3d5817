import itertools

import pytest
from flask_jwt_extended import create_access_token

from collabspace import create_app, db, get_services
from collabspace.auth import hash_password
from collabspace.completion import refresh_completion
from collabspace.models import Project, ProjectMember, User
from collabspace.oauth import OAuthError
from collabspace.utils import utcnow

DEFAULT_PASSWORD = "password123"


class RecordingMailer:
    """Mailer double that records every send."""

    def __init__(self):
        self.succeed = True
        self.otps = []
        self.join_requests = []
        self.closed = False

    def send_otp(self, to_email, code, purpose='email_verification'):
        self.otps.append({'to': to_email, 'code': code, 'purpose': purpose})
        return self.succeed

    def send_join_request(self, owner_email, project_title, requester_name):
        self.join_requests.append({'to': owner_email, 'project': project_title, 'requester': requester_name})
        return self.succeed

    def last_code(self, email):
        for entry in reversed(self.otps):
            if entry['to'] == email:
                return entry['code']
        return None

    def close(self):
        self.closed = True


class RecordingPublisher:
    def __init__(self):
        self.succeed = True
        self.events = []

    def publish(self, channel, event, payload):
        if not self.succeed:
            return False
        self.events.append((channel, event, payload))
        return True


class FakeOAuth:
    provider = 'google'
    configured = True

    def __init__(self):
        self.profile = {
            'provider_account_id': 'google-sub-1',
            'email': 'grace@example.com',
            'name': 'Grace Hopper',
            'given_name': 'Grace',
            'family_name': 'Hopper',
            'image': 'https://example.com/grace.png',
            'tokens': {'access_token': 'at', 'token_type': 'Bearer', 'expires_in': 3600, 'scope': 'openid'},
        }
        self.error = None

    def authorization_url(self, state):
        return f"https://accounts.example.com/auth?state={state}"

    def fetch_profile(self, code):
        if self.error:
            raise OAuthError(self.error)
        return self.profile


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def oauth_client():
    return FakeOAuth()


@pytest.fixture
def app(mailer, publisher, oauth_client):
    app = create_app(
        'collabspace.config.TestConfig', mailer=mailer, publisher=publisher, oauth_client=oauth_client
    )
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    return get_services(app)


@pytest.fixture
def make_user(app):
    """Create a user. ``complete=False`` leaves the profile at 67%."""
    counter = itertools.count(1)

    def _make_user(complete=True, verified=True, password=DEFAULT_PASSWORD, **fields):
        n = next(counter)
        values = {
            'email': f"user{n}@example.com",
            'first_name': "Test",
            'last_name': f"User{n}",
            'handle': f"user.{n}",
            'profession': "Engineer",
            'skills': [],
        }
        if complete:
            values.update(bio="Builds side projects on weekends.", location="Hanoi")
        values.update(fields)

        user = User(
            password_hash=hash_password(password) if password else None,
            email_verified=utcnow() if verified else None,
            **values,
        )
        refresh_completion(user)
        db.session.add(user)
        db.session.commit()
        return user

    return _make_user


@pytest.fixture
def make_project(app):
    def _make_project(owner, **fields):
        values = {
            'title': "Open Source Tracker",
            'description': "A dashboard that tracks open source contributions.",
            'project_type': "open-source",
            'skills_required': ["python", "react"],
            'team_size_max': 5,
            'team_size_current': 1,
        }
        values.update(fields)
        project = Project(owner_id=owner.id, **values)
        db.session.add(project)
        db.session.commit()
        return project

    return _make_project


@pytest.fixture
def add_member(app):
    def _add_member(project, user, role='member'):
        db.session.add(ProjectMember(project_id=project.id, user_id=user.id, role=role))
        project.team_size_current += 1
        db.session.commit()

    return _add_member


@pytest.fixture
def auth_headers(app):
    def _auth_headers(user):
        return {'Authorization': f"Bearer {create_access_token(identity=str(user.id))}"}

    return _auth_headers
