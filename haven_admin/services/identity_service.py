"""
Identity / session provider

Password accounts, server-side session rows and signed session tokens. The
rest of the service only uses the five provider operations below and never
decodes tokens itself.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from haven_admin.core.error_handling import AuthenticationFailed, ValidationFailed
from haven_admin.models.common import utcnow
from haven_admin.models.profile import Account, AuthSession
from haven_admin.utils.security import (
    create_session_token,
    get_password_hash,
    session_expiry,
    verify_password,
    verify_token,
)

logger = logging.getLogger(__name__)


@dataclass
class SignInResult:
    user: Account
    session: AuthSession
    access_token: str


class IdentityProvider:
    """Account and session operations backed by the accounts/auth_sessions tables"""

    def __init__(self, db: Session):
        self.db = db

    def sign_up(self, email: str, password: str, metadata: Optional[Dict[str, Any]] = None) -> Account:
        """
        Register a new account.

        Args:
            email: Login e-mail, stored lower-cased
            password: Plain password, stored as a bcrypt hash
            metadata: Free-form sign-up data (full name, requested role, ...)

        Returns:
            The new Account
        """
        email = (email or "").strip().lower()
        if not email or not password:
            raise ValidationFailed("Email and password are required.")

        account = Account(
            email=email,
            password_hash=get_password_hash(password),
            user_metadata=metadata or {},
        )
        self.db.add(account)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ValidationFailed("User already registered")

        self.db.refresh(account)
        logger.info(f"Registered account {account.id}")
        return account

    def sign_in(self, email: str, password: str) -> SignInResult:
        email = (email or "").strip().lower()
        account = self.db.query(Account).filter(Account.email == email).first()
        if not account or not verify_password(password or "", account.password_hash):
            raise AuthenticationFailed()

        auth_session = AuthSession(user_id=account.id, expires_at=session_expiry())
        self.db.add(auth_session)
        self.db.commit()
        self.db.refresh(auth_session)

        token = create_session_token(account.id, auth_session.id, auth_session.expires_at)
        logger.info(f"Account {account.id} signed in")
        return SignInResult(user=account, session=auth_session, access_token=token)

    def get_session(self, token: Optional[str]) -> Optional[AuthSession]:
        """Return the live session behind a token, or None if missing, expired or revoked."""
        if not token:
            return None

        payload = verify_token(token)
        if not payload:
            return None

        auth_session = self.db.query(AuthSession).filter(AuthSession.id == payload.get("sid")).first()
        if not auth_session or auth_session.revoked:
            return None
        if auth_session.user_id != payload.get("sub"):
            return None
        if auth_session.expires_at <= utcnow():
            return None
        return auth_session

    def get_user(self, token: Optional[str]) -> Optional[Account]:
        auth_session = self.get_session(token)
        if not auth_session:
            return None
        return auth_session.account

    def sign_out(self, token: Optional[str]) -> None:
        auth_session = self.get_session(token)
        if not auth_session:
            return

        auth_session.revoked = True
        self.db.commit()
        logger.info(f"Session {auth_session.id} signed out")

    def sign_out_session(self, auth_session: AuthSession) -> None:
        auth_session.revoked = True
        self.db.commit()
        logger.info(f"Session {auth_session.id} revoked")
