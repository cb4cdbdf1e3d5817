from dataclasses import dataclass

from collabspace import socketio
from collabspace.auth import AccountService
from collabspace.chat import ChatRelay
from collabspace.join_requests import JoinRequestManager
from collabspace.mailer import Mailer
from collabspace.notifications import NotificationSink
from collabspace.oauth import GoogleOAuthClient
from collabspace.otp import OtpIssuer
from collabspace.profile import ProfileService
from collabspace.projects import ProjectService
from collabspace.pubsub import ChatPublisher


@dataclass
class Services:
    mailer: Mailer
    publisher: ChatPublisher
    oauth: GoogleOAuthClient
    otp: OtpIssuer
    accounts: AccountService
    profiles: ProfileService
    notifications: NotificationSink
    projects: ProjectService
    join_requests: JoinRequestManager
    chat: ChatRelay

    def close(self):
        close = getattr(self.mailer, 'close', None)
        if close is not None:
            close()


def build_services(app, session, mailer=None, publisher=None, oauth_client=None):
    """Wire every service to its collaborators for one app."""
    mailer = mailer or Mailer.from_config(app.config)
    publisher = publisher or ChatPublisher(socketio)
    oauth_client = oauth_client or GoogleOAuthClient.from_config(app.config)

    otp = OtpIssuer(session)
    notifications = NotificationSink(session)
    return Services(
        mailer=mailer,
        publisher=publisher,
        oauth=oauth_client,
        otp=otp,
        accounts=AccountService(session, otp, mailer),
        profiles=ProfileService(session),
        notifications=notifications,
        projects=ProjectService(session, notifications),
        join_requests=JoinRequestManager(session, notifications, mailer),
        chat=ChatRelay(session, publisher),
    )
