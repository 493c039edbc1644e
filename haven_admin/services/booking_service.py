"""
Scheduling & booking workflow

Appointment transitions for a therapist (confirm, reject, cancel,
reschedule, message), the patient notifications they produce, weekday
availability, the month calendar and live-session broadcasts.

Transitions:
    pending   --confirm-->    confirmed
    pending   --reject-->     (deleted)
    confirmed --cancel-->     (deleted)
    confirmed --reschedule--> confirmed (scheduled_at moved)
"""

import calendar
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from haven_admin.core.error_handling import NotFoundError, SlotTakenError, ValidationFailed
from haven_admin.models.common import to_naive_utc, utcnow
from haven_admin.models.profile import Profile, WEEKDAYS
from haven_admin.models.scheduling import Appointment, AppointmentStatus, LiveSession, Notification
from haven_admin.services.store import commit_or_raise, store_message

logger = logging.getLogger(__name__)

# Which transitions notify the patient. Reject deliberately stays silent.
NOTIFY_ON_TRANSITION: Dict[str, bool] = {
    "confirm": True,
    "reject": False,
    "cancel": True,
    "reschedule": True,
    "message": True,
}

DEFAULT_CONFIRM_REPLY = "Session confirmed."


def _day(value: datetime) -> str:
    return value.strftime("%Y-%m-%d")


def weekday_name(day: date) -> str:
    return day.strftime("%A").lower()


@dataclass
class CalendarDay:
    day: date
    in_month: bool
    available: bool
    appointments: List[Appointment] = field(default_factory=list)
    live_sessions: List[LiveSession] = field(default_factory=list)


@dataclass
class TherapistDashboard:
    pending: List[Appointment]
    upcoming: List[Appointment]
    history: List[Appointment]
    patients: List[Profile]


class BookingService:

    @staticmethod
    def _notify(db: Session, transition: str, user_id: str, title: str, message: str) -> Optional[Notification]:
        if not NOTIFY_ON_TRANSITION.get(transition, False):
            return None
        notification = Notification(user_id=user_id, title=title, message=message)
        db.add(notification)
        commit_or_raise(db, f"notify patient after {transition}")
        logger.info(f"Notified user {user_id}: {title}")
        return notification

    @staticmethod
    def get_appointment(db: Session, therapist_id: str, appointment_id: str) -> Appointment:
        appointment = (
            db.query(Appointment)
            .filter(Appointment.id == appointment_id, Appointment.therapist_id == therapist_id)
            .first()
        )
        if not appointment:
            raise NotFoundError("Appointment not found")
        return appointment

    @staticmethod
    def dashboard(db: Session, therapist_id: str, now: Optional[datetime] = None) -> TherapistDashboard:
        """
        Pending requests (soonest first), upcoming confirmed sessions,
        full history and the therapist's distinct patients.
        """
        now = now or utcnow()
        base = db.query(Appointment).filter(Appointment.therapist_id == therapist_id)

        pending = (
            base.filter(Appointment.status == AppointmentStatus.PENDING.value)
            .order_by(Appointment.scheduled_at.asc())
            .all()
        )
        upcoming = (
            base.filter(
                Appointment.status == AppointmentStatus.CONFIRMED.value,
                Appointment.scheduled_at >= now,
            )
            .order_by(Appointment.scheduled_at.asc())
            .all()
        )
        history = base.order_by(Appointment.scheduled_at.desc()).all()

        patients = {}
        for appointment in history:
            if appointment.patient is not None:
                patients[appointment.patient.id] = appointment.patient

        return TherapistDashboard(
            pending=pending,
            upcoming=upcoming,
            history=history,
            patients=list(patients.values()),
        )

    @staticmethod
    def confirm(db: Session, therapist_id: str, appointment_id: str, reply: Optional[str] = None) -> Appointment:
        appointment = BookingService.get_appointment(db, therapist_id, appointment_id)
        if appointment.status != AppointmentStatus.PENDING.value:
            raise ValidationFailed("Only pending requests can be confirmed.")

        appointment.status = AppointmentStatus.CONFIRMED.value
        appointment.therapist_reply = reply or DEFAULT_CONFIRM_REPLY
        commit_or_raise(db, "confirm appointment")

        BookingService._notify(
            db,
            "confirm",
            appointment.user_id,
            "Booking Confirmed",
            reply or f"Your session on {_day(appointment.scheduled_at)} is confirmed.",
        )
        db.refresh(appointment)
        return appointment

    @staticmethod
    def reject(db: Session, therapist_id: str, appointment_id: str) -> None:
        appointment = BookingService.get_appointment(db, therapist_id, appointment_id)
        if appointment.status != AppointmentStatus.PENDING.value:
            raise ValidationFailed("Only pending requests can be rejected.")

        user_id = appointment.user_id
        db.delete(appointment)
        commit_or_raise(db, "reject appointment")
        BookingService._notify(db, "reject", user_id, "Booking Rejected", "")
        logger.info(f"Appointment {appointment_id} rejected")

    @staticmethod
    def cancel(db: Session, therapist_id: str, appointment_id: str, reason: Optional[str] = None) -> None:
        appointment = BookingService.get_appointment(db, therapist_id, appointment_id)
        if appointment.status != AppointmentStatus.CONFIRMED.value:
            raise ValidationFailed("Only confirmed appointments can be cancelled.")

        user_id = appointment.user_id
        scheduled_at = appointment.scheduled_at
        db.delete(appointment)
        commit_or_raise(db, "cancel appointment")

        BookingService._notify(
            db,
            "cancel",
            user_id,
            "Appointment Cancelled",
            reason or f"Your appointment on {_day(scheduled_at)} was cancelled.",
        )
        logger.info(f"Appointment {appointment_id} cancelled")

    @staticmethod
    def reschedule(db: Session, therapist_id: str, appointment_id: str, new_scheduled_at: datetime) -> Appointment:
        """
        Move a confirmed appointment.

        Raises:
            SlotTakenError: the therapist already has an appointment at that time;
                the appointment keeps its original time
        """
        appointment = BookingService.get_appointment(db, therapist_id, appointment_id)
        if appointment.status != AppointmentStatus.CONFIRMED.value:
            raise ValidationFailed("Only confirmed appointments can be rescheduled.")

        new_scheduled_at = to_naive_utc(new_scheduled_at)
        appointment.scheduled_at = new_scheduled_at
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            logger.warning(f"Reschedule of {appointment_id} hit a taken slot: {store_message(e)}")
            raise SlotTakenError()

        BookingService._notify(
            db,
            "reschedule",
            appointment.user_id,
            "Appointment Rescheduled",
            f"Your appointment has been moved to {_day(new_scheduled_at)} at {new_scheduled_at.strftime('%H:%M')}.",
        )
        db.refresh(appointment)
        return appointment

    @staticmethod
    def message(db: Session, therapist_id: str, appointment_id: str, text: str) -> Notification:
        appointment = BookingService.get_appointment(db, therapist_id, appointment_id)
        if not text or not text.strip():
            raise ValidationFailed("Message is required.")
        return BookingService._notify(db, "message", appointment.user_id, "Message from Therapist", text)

    # --- Availability ---

    @staticmethod
    def set_day_availability(db: Session, therapist_id: str, weekday: str, available: bool) -> Dict[str, bool]:
        weekday = weekday.strip().lower()
        if weekday not in WEEKDAYS:
            raise ValidationFailed(f"Unknown weekday: {weekday}")

        profile = db.query(Profile).filter(Profile.id == therapist_id).first()
        if not profile:
            raise NotFoundError("Profile not found")

        # New dict so the JSON column change is detected
        availability = dict(profile.availability or {})
        availability[weekday] = bool(available)
        profile.availability = availability
        commit_or_raise(db, "update availability")
        logger.info(f"Therapist {therapist_id} set {weekday} available={available}")
        return availability

    @staticmethod
    def toggle_day_availability(db: Session, therapist_id: str, weekday: str) -> Dict[str, bool]:
        weekday = weekday.strip().lower()
        profile = db.query(Profile).filter(Profile.id == therapist_id).first()
        if not profile:
            raise NotFoundError("Profile not found")
        return BookingService.set_day_availability(
            db, therapist_id, weekday, not profile.is_day_available(weekday)
        )

    # --- Calendar ---

    @staticmethod
    def month_calendar(db: Session, therapist: Profile, year: int, month: int) -> List[List[CalendarDay]]:
        """
        Weeks (Sunday to Saturday) covering the month. Appointments are the
        therapist's own; live sessions are every active session that month.
        """
        if not 1 <= month <= 12:
            raise ValidationFailed("Month must be between 1 and 12.")

        month_start = datetime(year, month, 1)
        next_month = datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1)

        appointments = (
            db.query(Appointment)
            .filter(
                Appointment.therapist_id == therapist.id,
                Appointment.scheduled_at >= month_start,
                Appointment.scheduled_at < next_month,
            )
            .order_by(Appointment.scheduled_at.asc())
            .all()
        )
        sessions = (
            db.query(LiveSession)
            .filter(
                LiveSession.is_active.is_(True),
                LiveSession.start_time >= month_start,
                LiveSession.start_time < next_month,
            )
            .order_by(LiveSession.start_time.asc())
            .all()
        )

        weeks = []
        for week in calendar.Calendar(firstweekday=calendar.SUNDAY).monthdatescalendar(year, month):
            row = []
            for day in week:
                row.append(CalendarDay(
                    day=day,
                    in_month=day.month == month,
                    available=therapist.is_day_available(weekday_name(day)),
                    appointments=[a for a in appointments if a.scheduled_at.date() == day],
                    live_sessions=[s for s in sessions if s.start_time.date() == day],
                ))
            weeks.append(row)
        return weeks

    # --- Live sessions ---

    @staticmethod
    def list_live_sessions(db: Session, host_id: str) -> List[LiveSession]:
        return (
            db.query(LiveSession)
            .filter(LiveSession.host_id == host_id)
            .order_by(LiveSession.start_time.asc())
            .all()
        )

    @staticmethod
    def get_live_session(db: Session, host_id: str, session_id: str) -> LiveSession:
        live_session = (
            db.query(LiveSession)
            .filter(LiveSession.id == session_id, LiveSession.host_id == host_id)
            .first()
        )
        if not live_session:
            raise NotFoundError("Session not found")
        return live_session

    @staticmethod
    def create_live_session(
        db: Session,
        host_id: str,
        title: str,
        start_time: datetime,
        end_time: Optional[datetime] = None,
        meeting_link: Optional[str] = None,
    ) -> LiveSession:
        if not title or not title.strip():
            raise ValidationFailed("Title is required.")
        start_time = to_naive_utc(start_time)
        end_time = to_naive_utc(end_time) if end_time else None
        if end_time and end_time < start_time:
            raise ValidationFailed("End time must be after start time.")

        live_session = LiveSession(
            host_id=host_id,
            title=title,
            start_time=start_time,
            end_time=end_time,
            meeting_link=meeting_link,
            is_active=True,
        )
        db.add(live_session)
        commit_or_raise(db, "publish session")
        db.refresh(live_session)
        logger.info(f"Live session {live_session.id} published by {host_id}")
        return live_session

    @staticmethod
    def update_live_session(
        db: Session,
        host_id: str,
        session_id: str,
        title: str,
        start_time: datetime,
        end_time: Optional[datetime] = None,
        meeting_link: Optional[str] = None,
        is_active: bool = True,
    ) -> LiveSession:
        live_session = BookingService.get_live_session(db, host_id, session_id)
        if not title or not title.strip():
            raise ValidationFailed("Title is required.")
        start_time = to_naive_utc(start_time)
        end_time = to_naive_utc(end_time) if end_time else None
        if end_time and end_time < start_time:
            raise ValidationFailed("End time must be after start time.")

        live_session.title = title
        live_session.start_time = start_time
        live_session.end_time = end_time
        live_session.meeting_link = meeting_link
        live_session.is_active = is_active
        commit_or_raise(db, "update session")
        db.refresh(live_session)
        return live_session

    @staticmethod
    def delete_live_session(db: Session, host_id: str, session_id: str) -> None:
        live_session = BookingService.get_live_session(db, host_id, session_id)
        db.delete(live_session)
        commit_or_raise(db, "delete session")
