import logging
import time

from flask_jwt_extended import create_access_token
from sqlalchemy import delete, select

from collabspace import bcrypt
from collabspace.completion import refresh_completion
from collabspace.errors import ActionResult, Conflict, NotAuthenticated, NotFound, ValidationFailed, action
from collabspace.models import Account, OtpPurpose, User, VerificationToken
from collabspace.otp import INVALID_CODE
from collabspace.utils import is_valid_handle, normalize_email, slugify_handle, utcnow

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
PASSWORD_TOO_SHORT = "Password must be at least 8 characters"
INVALID_HANDLE = "Invalid handle. Use 3-30 characters: letters, numbers, dots, underscores"


def hash_password(password):
    return bcrypt.generate_password_hash(password).decode('utf-8')


def check_password(password_hash, password):
    return bool(password_hash) and bcrypt.check_password_hash(password_hash, password)


def generate_token(user):
    return create_access_token(identity=str(user.id))


def handle_taken(session, handle, exclude_user_id=None):
    stmt = select(User.id).where(User.handle == handle)
    if exclude_user_id is not None:
        stmt = stmt.where(User.id != exclude_user_id)
    return session.execute(stmt.limit(1)).first() is not None


class AccountService:
    """Signup, login, email verification and password recovery."""

    def __init__(self, session, otp, mailer):
        self.session = session
        self.otp = otp
        self.mailer = mailer

    def _user_by_email(self, email):
        return self.session.execute(select(User).where(User.email == email)).scalar_one_or_none()

    def _send_code(self, email, purpose=OtpPurpose.EMAIL_VERIFICATION.value):
        code = self.otp.issue(email, purpose)
        self.session.commit()
        return self.mailer.send_otp(email, code, purpose)

    @action("Something went wrong. Please try again.")
    def signup(self, email, password, confirm_password, first_name, last_name, handle):
        if not all([email, password, confirm_password, first_name, last_name, handle]):
            raise ValidationFailed("All fields are required")
        if password != confirm_password:
            raise ValidationFailed("Passwords don't match")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationFailed(PASSWORD_TOO_SHORT)

        handle = slugify_handle(handle)
        if not is_valid_handle(handle):
            raise ValidationFailed(INVALID_HANDLE)

        email = normalize_email(email)
        existing = self._user_by_email(email)
        if existing is not None:
            if existing.email_verified:
                raise Conflict("An account with this email already exists. Please log in.")
            # Unverified account: start verification over with a fresh code
            sent = self._send_code(email)
            return ActionResult.ok(
                "Verification code sent! Check your email.", side_effects={'email': sent}, email=email
            )

        if handle_taken(self.session, handle):
            raise Conflict("This handle is already taken")

        user = User(
            email=email,
            password_hash=hash_password(password),
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            name=f"{first_name.strip()} {last_name.strip()}",
            handle=handle,
            skills=[],
            is_new_user=True,
        )
        refresh_completion(user)
        self.session.add(user)
        self.session.flush()

        sent = self._send_code(email)
        logger.info("Created account %s", user.id)
        return ActionResult.ok(
            "Account created! Check your email for the verification code.",
            status_code=201,
            side_effects={'email': sent},
            email=email,
        )

    @action("Verification failed. Please try again.")
    def verify_email(self, email, code):
        if not email or not code:
            raise ValidationFailed("Email and OTP are required")
        if not self.otp.verify(email, code, OtpPurpose.EMAIL_VERIFICATION.value):
            # keep the failed attempt before the action rolls back
            self.session.commit()
            raise ValidationFailed(INVALID_CODE)
        self.session.commit()
        return ActionResult.ok("Email verified! You can now log in.")

    @action("Failed to resend code. Please try again.")
    def resend_otp(self, email):
        if not email:
            raise ValidationFailed("Email is required")
        email = normalize_email(email)
        user = self._user_by_email(email)
        if user is None:
            raise NotFound("No account found with this email")
        if user.email_verified:
            raise Conflict("Email already verified. Please log in.")

        sent = self._send_code(email)
        return ActionResult.ok("New verification code sent!", side_effects={'email': sent})

    @action("Failed to check user")
    def check_user(self, email):
        if not email:
            return ActionResult.ok(exists=False)
        return ActionResult.ok(exists=self._user_by_email(normalize_email(email)) is not None)

    @action("Something went wrong")
    def verify_email_link(self, token):
        if not token:
            raise ValidationFailed("Token is required")

        record = self.session.execute(
            select(VerificationToken).where(VerificationToken.token == token)
        ).scalar_one_or_none()
        if record is None:
            raise ValidationFailed("Invalid or expired verification link")

        if utcnow() > record.expires:
            self.session.delete(record)
            self.session.commit()
            raise ValidationFailed("Verification link has expired. Please sign up again.")

        user = self._user_by_email(record.identifier)
        if user is not None:
            user.email_verified = utcnow()
        self.session.execute(
            delete(VerificationToken).where(
                VerificationToken.identifier == record.identifier, VerificationToken.token == token
            )
        )
        self.session.commit()
        return ActionResult.ok()

    @action("Login failed. Please try again.")
    def login(self, email, password):
        if not email or not password:
            raise ValidationFailed("Email and password are required")

        user = self._user_by_email(normalize_email(email))
        if user is None:
            raise NotAuthenticated("No account found with this email. Please sign up first.")
        if not user.password_hash:
            raise NotAuthenticated("This account uses Google Sign-In. Please use 'Continue with Google'.")
        if not user.email_verified:
            raise NotAuthenticated("Please verify your email first. Check your inbox for the OTP.")
        if not check_password(user.password_hash, password):
            raise NotAuthenticated("Invalid password")

        return ActionResult.ok("Login successful", access_token=generate_token(user), user=user.to_dict())

    @action("OAuth sign-in failed")
    def oauth_login(self, provider, profile):
        """Sign in (or sign up) with a verified identity-provider profile.

        Accounts are linked by email, so a password user who signs in with
        Google the first time gets the Google identity attached.
        """
        email = normalize_email(profile.get('email'))
        if not email:
            raise ValidationFailed("Identity provider did not return an email")

        account = self.session.execute(
            select(Account).where(
                Account.provider == provider,
                Account.provider_account_id == profile['provider_account_id'],
            )
        ).scalar_one_or_none()

        if account is not None:
            user = self.session.get(User, account.user_id)
        else:
            user = self._user_by_email(email)
            if user is None:
                user = User(
                    email=email,
                    email_verified=utcnow(),
                    name=profile.get('name'),
                    first_name=profile.get('given_name'),
                    last_name=profile.get('family_name'),
                    image=profile.get('image'),
                    skills=[],
                    is_new_user=True,
                )
                refresh_completion(user)
                self.session.add(user)
                self.session.flush()
                logger.info("New user created via %s OAuth: %s", provider, user.id)
            elif user.email_verified is None:
                user.email_verified = utcnow()
            account = Account(user_id=user.id, provider=provider, provider_account_id=profile['provider_account_id'])
            self.session.add(account)

        tokens = profile.get('tokens') or {}
        account.access_token = tokens.get('access_token')
        account.refresh_token = tokens.get('refresh_token') or account.refresh_token
        account.id_token = tokens.get('id_token')
        account.token_type = tokens.get('token_type')
        account.scope = tokens.get('scope')
        if tokens.get('expires_in'):
            account.expires_at = int(time.time()) + int(tokens["expires_in"])
        self.session.commit()

        return ActionResult.ok(access_token=generate_token(user), is_new_user=user.is_new_user, user=user.to_dict())

    @action("Failed to send reset code. Please try again.")
    def request_password_reset(self, email):
        if not email:
            raise ValidationFailed("Email is required")
        email = normalize_email(email)
        sent = False
        if self._user_by_email(email) is not None:
            sent = self._send_code(email, OtpPurpose.PASSWORD_RESET.value)
        # Same answer whether or not the account exists
        return ActionResult.ok(
            "If an account exists for this email, a reset code has been sent.", side_effects={'email': sent}
        )

    @action("Failed to reset password. Please try again.")
    def reset_password(self, email, code, new_password):
        if not email or not code or not new_password:
            raise ValidationFailed("Email, code and new password are required")
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationFailed(PASSWORD_TOO_SHORT)

        email = normalize_email(email)
        user = self._user_by_email(email)
        if user is None:
            raise ValidationFailed(INVALID_CODE)
        if not self.otp.verify(email, code, OtpPurpose.PASSWORD_RESET.value):
            self.session.commit()
            raise ValidationFailed(INVALID_CODE)

        user.password_hash = hash_password(new_password)
        self.session.commit()
        return ActionResult.ok("Password updated. You can now log in.")
