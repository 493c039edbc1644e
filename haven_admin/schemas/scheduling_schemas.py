"""
Pydantic schemas for appointments, availability, calendar and live sessions
"""

from pydantic import BaseModel
from typing import Dict, List, Optional
from datetime import date, datetime

from haven_admin.models.profile import display_name


class AppointmentResponse(BaseModel):
    id: str
    user_id: str
    therapist_id: str
    scheduled_at: datetime
    status: str
    notes: Optional[str] = None
    therapist_reply: Optional[str] = None
    patient_name: str
    therapist_name: str

    @classmethod
    def from_appointment(cls, appointment) -> "AppointmentResponse":
        return cls(
            id=appointment.id,
            user_id=appointment.user_id,
            therapist_id=appointment.therapist_id,
            scheduled_at=appointment.scheduled_at,
            status=appointment.status,
            notes=appointment.notes,
            therapist_reply=appointment.therapist_reply,
            patient_name=display_name(appointment.patient, "Deleted User"),
            therapist_name=display_name(appointment.therapist, "Deleted Therapist"),
        )


class ConfirmPayload(BaseModel):
    reply: Optional[str] = None


class CancelPayload(BaseModel):
    reason: Optional[str] = None


class ReschedulePayload(BaseModel):
    scheduled_at: datetime


class MessagePayload(BaseModel):
    message: str


class AvailabilityPayload(BaseModel):
    """Omit ``available`` to flip the current value"""
    available: Optional[bool] = None


class AvailabilityResponse(BaseModel):
    success: bool = True
    weekday: str
    available: bool
    availability: Dict[str, bool]


class PatientSummary(BaseModel):
    id: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    phone_number: Optional[str] = None

    class Config:
        from_attributes = True


class DashboardResponse(BaseModel):
    pending: List[AppointmentResponse]
    upcoming: List[AppointmentResponse]
    history: List[AppointmentResponse]
    patients: List[PatientSummary]


class LiveSessionPayload(BaseModel):
    title: str
    start_time: datetime
    end_time: Optional[datetime] = None
    meeting_link: Optional[str] = None
    is_active: bool = True


class LiveSessionResponse(BaseModel):
    id: str
    host_id: str
    title: str
    start_time: datetime
    end_time: Optional[datetime] = None
    meeting_link: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True


class CalendarDayResponse(BaseModel):
    day: date
    in_month: bool
    available: bool
    appointments: List[AppointmentResponse]
    live_sessions: List[LiveSessionResponse]

    @classmethod
    def from_day(cls, calendar_day) -> "CalendarDayResponse":
        return cls(
            day=calendar_day.day,
            in_month=calendar_day.in_month,
            available=calendar_day.available,
            appointments=[AppointmentResponse.from_appointment(a) for a in calendar_day.appointments],
            live_sessions=[LiveSessionResponse.model_validate(s) for s in calendar_day.live_sessions],
        )


class CalendarResponse(BaseModel):
    year: int
    month: int
    availability: Dict[str, bool]
    weeks: List[List[CalendarDayResponse]]
