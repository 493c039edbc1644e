"""
Scheduling models: appointments, live sessions and patient notifications
"""

from sqlalchemy import Column, String, DateTime, Text, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship
from haven_admin.database import Base
from haven_admin.models.common import generate_uuid, utcnow
import enum


class AppointmentStatus(str, enum.Enum):
    """Rejected and cancelled appointments are deleted, not stored"""
    PENDING = "pending"
    CONFIRMED = "confirmed"


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(String, primary_key=True, default=generate_uuid)
    user_id = Column(String, nullable=False, index=True)
    therapist_id = Column(String, nullable=False, index=True)

    scheduled_at = Column(DateTime, nullable=False)
    status = Column(String, nullable=False, default=AppointmentStatus.PENDING.value)

    notes = Column(Text, nullable=True)
    therapist_reply = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    patient = relationship(
        "Profile",
        primaryjoin="foreign(Appointment.user_id) == Profile.id",
        viewonly=True,
    )
    therapist = relationship(
        "Profile",
        primaryjoin="foreign(Appointment.therapist_id) == Profile.id",
        viewonly=True,
    )

    __table_args__ = (
        UniqueConstraint("therapist_id", "scheduled_at", name="uq_appointment_therapist_slot"),
    )


class LiveSession(Base):
    __tablename__ = "live_sessions"

    id = Column(String, primary_key=True, default=generate_uuid)
    host_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=True)
    meeting_link = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=utcnow)


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String, primary_key=True, default=generate_uuid)
    user_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)

    created_at = Column(DateTime, default=utcnow)
