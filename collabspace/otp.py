"""One-time email codes.

At most one live code exists per email: issuing a code for any purpose
deletes every earlier code for that address. Every failed check counts
against the live code, which is discarded after MAX_ATTEMPTS misses.
Neither method commits; the calling action owns the transaction.
"""
import logging
import secrets
from datetime import timedelta

from sqlalchemy import delete, select

from collabspace.models import OtpPurpose, OtpToken, User
from collabspace.utils import normalize_email, utcnow

logger = logging.getLogger(__name__)

OTP_TTL = timedelta(hours=24)
MAX_ATTEMPTS = 5
INVALID_CODE = "Invalid or expired verification code"


def generate_code():
    return str(100000 + secrets.randbelow(900000))


class OtpIssuer:
    def __init__(self, session):
        self.session = session

    def issue(self, email, purpose=OtpPurpose.EMAIL_VERIFICATION.value):
        email = normalize_email(email)
        self.session.execute(delete(OtpToken).where(OtpToken.email == email))

        code = generate_code()
        self.session.add(OtpToken(email=email, otp=code, type=purpose, expires=utcnow() + OTP_TTL))
        self.session.flush()
        logger.debug("Issued %s code for %s", purpose, email)
        return code

    def verify(self, email, code, purpose=OtpPurpose.EMAIL_VERIFICATION.value):
        """Consume a matching code and stamp the user's email as verified.

        Returns False for any mismatch without saying which check failed.
        """
        email = normalize_email(email)
        now = utcnow()
        token = self.session.execute(
            select(OtpToken)
            .where(
                OtpToken.email == email,
                OtpToken.otp == str(code).strip(),
                OtpToken.type == purpose,
                OtpToken.used.is_(False),
                OtpToken.expires > now,
            )
            .limit(1)
        ).scalar_one_or_none()

        if token is None:
            self._record_failure(email, now)
            return False

        token.used = True
        self.session.flush()
        self.session.execute(delete(OtpToken).where(OtpToken.email == email))

        user = self.session.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if user is not None and user.email_verified is None:
            user.email_verified = now
        return True

    def _record_failure(self, email, now):
        live = self.session.execute(
            select(OtpToken).where(OtpToken.email == email, OtpToken.used.is_(False), OtpToken.expires > now)
        ).scalars().all()
        for token in live:
            token.attempts = (token.attempts or 0) + 1
            if token.attempts >= MAX_ATTEMPTS:
                logger.info("Discarding %s code for %s after %s failed attempts", token.type, email, token.attempts)
                self.session.delete(token)
        self.session.flush()
