"""
Tests for the identity provider: accounts, sessions and session tokens
"""

from datetime import timedelta

import pytest

from haven_admin.core.error_handling import AuthenticationFailed, ValidationFailed
from haven_admin.models.common import utcnow
from haven_admin.models.profile import AuthSession
from haven_admin.services.identity_service import IdentityProvider
from haven_admin.utils.security import create_session_token, verify_token


@pytest.fixture
def provider(db_session):
    return IdentityProvider(db_session)


@pytest.fixture
def account(provider):
    return provider.sign_up("Casey.Morgan@Haven-Clinic.org", "long-enough-pass", {"full_name": "Casey Morgan"})


class TestSignUp:

    def test_email_is_lowercased_and_password_hashed(self, account):
        assert account.email == "casey.morgan@haven-clinic.org"
        assert account.password_hash != "long-enough-pass"
        assert account.user_metadata == {"full_name": "Casey Morgan"}

    def test_duplicate_email(self, provider, account):
        with pytest.raises(ValidationFailed) as exc_info:
            provider.sign_up("casey.morgan@haven-clinic.org", "another-pass")
        assert exc_info.value.message == "User already registered"

    def test_missing_credentials(self, provider):
        with pytest.raises(ValidationFailed):
            provider.sign_up("", "pass")
        with pytest.raises(ValidationFailed):
            provider.sign_up("someone@haven-clinic.org", "")


class TestSignIn:

    def test_sign_in_issues_live_session(self, provider, account):
        result = provider.sign_in("CASEY.MORGAN@haven-clinic.org", "long-enough-pass")

        assert result.user.id == account.id
        assert provider.get_session(result.access_token).id == result.session.id
        assert provider.get_user(result.access_token).id == account.id

    def test_wrong_password(self, provider, account):
        with pytest.raises(AuthenticationFailed) as exc_info:
            provider.sign_in(account.email, "wrong")
        assert exc_info.value.message == "Invalid email or password."

    def test_unknown_email(self, provider):
        with pytest.raises(AuthenticationFailed):
            provider.sign_in("nobody@haven-clinic.org", "whatever")


class TestSessions:

    def test_sign_out_revokes(self, provider, account):
        token = provider.sign_in(account.email, "long-enough-pass").access_token
        provider.sign_out(token)
        assert provider.get_session(token) is None

    def test_sign_out_without_session_is_noop(self, provider):
        provider.sign_out(None)
        provider.sign_out("garbage")

    def test_expired_session(self, db_session, provider, account):
        result = provider.sign_in(account.email, "long-enough-pass")
        result.session.expires_at = utcnow() - timedelta(minutes=1)
        db_session.commit()

        assert provider.get_session(result.access_token) is None

    def test_token_for_another_account_is_refused(self, db_session, provider, account):
        result = provider.sign_in(account.email, "long-enough-pass")
        forged = create_session_token("someone-else", result.session.id, result.session.expires_at)
        assert provider.get_session(forged) is None

    def test_tampered_token(self, provider, account):
        token = provider.sign_in(account.email, "long-enough-pass").access_token
        assert verify_token(token + "x") is None
        assert provider.get_session(token[:-2]) is None

    def test_sessions_are_independent(self, db_session, provider, account):
        first = provider.sign_in(account.email, "long-enough-pass")
        second = provider.sign_in(account.email, "long-enough-pass")
        provider.sign_out(first.access_token)

        assert provider.get_session(second.access_token) is not None
        assert db_session.query(AuthSession).filter(AuthSession.revoked.is_(True)).count() == 1
