from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from passlib.context import CryptContext
from haven_admin.config import settings
from haven_admin.core.logging import log_warning

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ALGORITHM = "HS256"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_session_token(user_id: str, session_id: str, expires_at: datetime) -> str:
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    to_encode = {"sub": user_id, "sid": session_id, "exp": expires_at}
    return jwt.encode(to_encode, settings.get_session_secret(), algorithm=ALGORITHM)


def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode a session token; expired or tampered tokens yield None.
    """
    try:
        return jwt.decode(token, settings.get_session_secret(), algorithms=[ALGORITHM])
    except JWTError as e:
        log_warning(f"Session token verification failed: {e}", logger_name=__name__)
        return None


def session_expiry(minutes: Optional[int] = None) -> datetime:
    minutes = minutes or settings.SESSION_TTL_MINUTES
    return datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(minutes=minutes)
