"""
Profile and identity models

Account/AuthSession back the identity provider; Profile is the platform's own
user record and is keyed by the same id as the account that signed up.
"""

from sqlalchemy import Column, String, Boolean, DateTime, Text, JSON, ForeignKey
from sqlalchemy.orm import relationship
from haven_admin.database import Base
from haven_admin.models.common import generate_uuid, utcnow
import enum


class Role(str, enum.Enum):
    """Stored role strings"""
    STANDARD_USER = "user"
    THERAPIST = "THERAPIST"
    STAFF_ADMIN = "SEC_SUPER_8841"
    SUPER_ADMIN = "DEV_OWNER_7752"


class ProfileStatus(str, enum.Enum):
    PENDING = "pending"
    ACTIVE = "active"
    BANNED = "banned"


WEEKDAYS = ["sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]


class Account(Base):
    __tablename__ = "accounts"

    id = Column(String, primary_key=True, default=generate_uuid)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    user_metadata = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=utcnow)

    sessions = relationship("AuthSession", back_populates="account", cascade="all, delete-orphan")


class AuthSession(Base):
    __tablename__ = "auth_sessions"

    id = Column(String, primary_key=True, default=generate_uuid)
    user_id = Column(String, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)
    revoked = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=utcnow)

    account = relationship("Account", back_populates="sessions")


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String, primary_key=True, index=True)
    email = Column(String, index=True, nullable=True)
    full_name = Column(String, nullable=True)
    phone_number = Column(String, nullable=True)
    address = Column(String, nullable=True)
    avatar_url = Column(String, nullable=True)
    about = Column(Text, nullable=True)

    role = Column(String, nullable=False, default=Role.STANDARD_USER.value)
    specialty = Column(String, nullable=True)
    status = Column(String, nullable=False, default=ProfileStatus.PENDING.value, index=True)
    is_super_admin = Column(Boolean, default=False, nullable=False)

    # {"monday": False, ...}; a missing weekday means open
    availability = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def is_therapist(self) -> bool:
        # Legacy profiles may carry a specialty without the therapist role
        return self.role == Role.THERAPIST.value or bool(self.specialty)

    @property
    def is_platform_admin(self) -> bool:
        return bool(self.is_super_admin) or self.role == Role.SUPER_ADMIN.value

    def is_day_available(self, weekday: str) -> bool:
        return (self.availability or {}).get(weekday.strip().lower()) is not False


def display_name(profile: "Profile", placeholder: str = "Deleted User") -> str:
    """Name shown for a joined profile; deleted or nameless profiles get the placeholder."""
    if profile is None or not profile.full_name:
        return placeholder
    return profile.full_name
