from datetime import timedelta

import pytest
from sqlalchemy import func, select

from collabspace import db
from collabspace.models import OtpPurpose, OtpToken
from collabspace.otp import MAX_ATTEMPTS, generate_code
from collabspace.utils import utcnow


def token_count(email):
    return db.session.execute(select(func.count()).select_from(OtpToken).where(OtpToken.email == email)).scalar()


@pytest.mark.unit
class TestGenerateCode:
    def test_code_is_six_digits(self):
        """Test codes are six-digit strings"""
        for _ in range(50):
            code = generate_code()
            assert len(code) == 6
            assert code.isdigit()
            assert 100000 <= int(code) <= 999999


@pytest.mark.unit
class TestOtpIssuer:
    """Test issuing and verifying one-time codes"""

    def test_verify_marks_email_verified_and_clears_tokens(self, services, make_user):
        """Test a correct code verifies the email and removes every token"""
        user = make_user(verified=False)
        code = services.otp.issue(user.email)

        assert services.otp.verify(user.email, code) is True
        assert user.email_verified is not None
        assert token_count(user.email) == 0

    def test_reissue_invalidates_previous_code(self, services, make_user, mocker):
        """Test only the most recently issued code is accepted"""
        user = make_user(verified=False)
        mocker.patch('collabspace.otp.generate_code', side_effect=["111111", "222222"])
        stale = services.otp.issue(user.email)
        fresh = services.otp.issue(user.email)

        assert token_count(user.email) == 1
        assert services.otp.verify(user.email, stale) is False
        assert services.otp.verify(user.email, fresh) is True

    def test_expired_code_is_rejected(self, services, make_user):
        """Test a code past its expiry does not verify"""
        user = make_user(verified=False)
        code = services.otp.issue(user.email)
        token = db.session.execute(select(OtpToken).where(OtpToken.email == user.email)).scalar_one()
        token.expires = utcnow() - timedelta(minutes=1)
        db.session.flush()

        assert services.otp.verify(user.email, code) is False
        assert user.email_verified is None

    def test_used_code_is_rejected(self, services, make_user):
        """Test a code verifies only once"""
        user = make_user(verified=False)
        code = services.otp.issue(user.email)

        assert services.otp.verify(user.email, code) is True
        assert services.otp.verify(user.email, code) is False

    def test_wrong_purpose_is_rejected(self, services, make_user):
        """Test a verification code cannot reset a password"""
        user = make_user(verified=False)
        code = services.otp.issue(user.email, OtpPurpose.EMAIL_VERIFICATION.value)

        assert services.otp.verify(user.email, code, OtpPurpose.PASSWORD_RESET.value) is False
        assert services.otp.verify(user.email, code, OtpPurpose.EMAIL_VERIFICATION.value) is True

    def test_issue_for_other_purpose_replaces_code(self, services, make_user):
        """Test issuing a reset code deletes the pending verification code"""
        user = make_user(verified=False)
        services.otp.issue(user.email, OtpPurpose.EMAIL_VERIFICATION.value)
        services.otp.issue(user.email, OtpPurpose.PASSWORD_RESET.value)

        purposes = db.session.execute(select(OtpToken.type).where(OtpToken.email == user.email)).scalars().all()
        assert purposes == [OtpPurpose.PASSWORD_RESET.value]

    def test_email_is_normalized(self, services, make_user):
        """Test codes match regardless of email case and whitespace"""
        user = make_user(verified=False)
        code = services.otp.issue(f"  {user.email.upper()} ")

        assert services.otp.verify(user.email, code) is True

    def test_verify_keeps_existing_verification_time(self, services, make_user):
        """Test an already verified email keeps its original timestamp"""
        user = make_user(verified=True)
        verified_at = user.email_verified
        code = services.otp.issue(user.email)

        assert services.otp.verify(user.email, code) is True
        assert user.email_verified == verified_at

    def test_wrong_guesses_discard_the_code(self, services, make_user, mocker):
        """Test the real code stops working after MAX_ATTEMPTS misses"""
        user = make_user(verified=False)
        mocker.patch('collabspace.otp.generate_code', return_value="123456")
        code = services.otp.issue(user.email)

        for _ in range(MAX_ATTEMPTS):
            assert services.otp.verify(user.email, "000000") is False

        assert token_count(user.email) == 0
        assert services.otp.verify(user.email, code) is False
        assert user.email_verified is None

    def test_misses_below_the_cap_are_counted(self, services, make_user, mocker):
        """Test each miss is recorded and the code still works under the cap"""
        user = make_user(verified=False)
        mocker.patch('collabspace.otp.generate_code', return_value="123456")
        code = services.otp.issue(user.email)

        for _ in range(MAX_ATTEMPTS - 1):
            services.otp.verify(user.email, "000000")

        token = db.session.execute(select(OtpToken).where(OtpToken.email == user.email)).scalar_one()
        assert token.attempts == MAX_ATTEMPTS - 1
        assert services.otp.verify(user.email, code) is True
