"""
Therapist dashboard (/therapist-admin)

Booking requests and appointment management, the month calendar with
weekday availability, the therapist's own modules, articles and live
sessions, community replies, profile editing and image uploads.
"""

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from haven_admin.config import settings
from haven_admin.core.error_handling import DetailNotFound, NotFoundError
from haven_admin.database import get_db
from haven_admin.dependencies import get_current_therapist
from haven_admin.models.profile import Profile
from haven_admin.schemas.admin_schemas import ProfileResponse, ProfileUpdatePayload
from haven_admin.schemas.content_schemas import (
    ActionResult,
    ArticlePayload,
    ArticleResponse,
    CommentPayload,
    CommentResponse,
    ForumDetailResponse,
    ForumResponse,
    LessonDetailResponse,
    LessonPayload,
    LessonResponse,
    ModuleDetailResponse,
    ModulePayload,
    ModuleResponse,
    StepPayload,
    StepResponse,
    StepUpdatePayload,
    ThreadDetailResponse,
    ThreadResponse,
    UploadResponse,
)
from haven_admin.schemas.scheduling_schemas import (
    AppointmentResponse,
    AvailabilityPayload,
    AvailabilityResponse,
    CalendarDayResponse,
    CalendarResponse,
    CancelPayload,
    ConfirmPayload,
    DashboardResponse,
    LiveSessionPayload,
    LiveSessionResponse,
    MessagePayload,
    PatientSummary,
    ReschedulePayload,
)
from haven_admin.services.article_service import ArticleService
from haven_admin.services.booking_service import BookingService
from haven_admin.services.content_tree import ContentTreeService
from haven_admin.services.profile_service import ProfileService
from haven_admin.services.storage_service import StorageService, build_storage_path, get_storage_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/therapist-admin", tags=["Therapist Admin"])


# --- Dashboard & appointments ---

@router.get("", response_model=DashboardResponse)
async def dashboard(
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    data = BookingService.dashboard(db, therapist.id)
    return DashboardResponse(
        pending=[AppointmentResponse.from_appointment(a) for a in data.pending],
        upcoming=[AppointmentResponse.from_appointment(a) for a in data.upcoming],
        history=[AppointmentResponse.from_appointment(a) for a in data.history],
        patients=[PatientSummary.model_validate(p) for p in data.patients],
    )


@router.post("/appointments/{appointment_id}/confirm", response_model=ActionResult)
async def confirm_appointment(
    appointment_id: str,
    payload: ConfirmPayload,
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    BookingService.confirm(db, therapist.id, appointment_id, payload.reply)
    return ActionResult(message="Confirmed!")


@router.post("/appointments/{appointment_id}/reject", response_model=ActionResult)
async def reject_appointment(
    appointment_id: str,
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    BookingService.reject(db, therapist.id, appointment_id)
    return ActionResult(message="Rejected")


@router.post("/appointments/{appointment_id}/cancel", response_model=ActionResult)
async def cancel_appointment(
    appointment_id: str,
    payload: CancelPayload,
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    BookingService.cancel(db, therapist.id, appointment_id, payload.reason)
    return ActionResult(message="Appointment Cancelled")


@router.post("/appointments/{appointment_id}/reschedule", response_model=ActionResult)
async def reschedule_appointment(
    appointment_id: str,
    payload: ReschedulePayload,
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    BookingService.reschedule(db, therapist.id, appointment_id, payload.scheduled_at)
    return ActionResult(message="Rescheduled successfully")


@router.post("/appointments/{appointment_id}/message", response_model=ActionResult)
async def message_patient(
    appointment_id: str,
    payload: MessagePayload,
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    BookingService.message(db, therapist.id, appointment_id, payload.message)
    return ActionResult(message="Message Sent")


# --- Calendar & availability ---

@router.get("/calendar", response_model=CalendarResponse)
async def month_calendar(
    year: Optional[int] = None,
    month: Optional[int] = None,
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    today = date.today()
    year = year or today.year
    month = month or today.month
    weeks = BookingService.month_calendar(db, therapist, year, month)
    return CalendarResponse(
        year=year,
        month=month,
        availability=therapist.availability or {},
        weeks=[[CalendarDayResponse.from_day(day) for day in week] for week in weeks],
    )


@router.put("/availability/{weekday}", response_model=AvailabilityResponse)
async def set_availability(
    weekday: str,
    payload: AvailabilityPayload,
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    if payload.available is None:
        availability = BookingService.toggle_day_availability(db, therapist.id, weekday)
    else:
        availability = BookingService.set_day_availability(db, therapist.id, weekday, payload.available)
    weekday = weekday.strip().lower()
    return AvailabilityResponse(weekday=weekday, available=availability[weekday], availability=availability)


# --- Modules ---

@router.get("/modules", response_model=List[ModuleResponse])
async def list_my_modules(
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    return ContentTreeService.list_modules(db, author_id=therapist.id)


@router.post("/modules", response_model=ModuleResponse)
async def create_module(
    payload: ModulePayload,
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    return ContentTreeService.create_module(db, author_id=therapist.id, **payload.model_dump())


@router.delete("/modules/{module_id}", response_model=ActionResult)
async def delete_module(
    module_id: str,
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    ContentTreeService.delete_module(db, module_id, author_id=therapist.id)
    return ActionResult(message="Module deleted")


@router.get("/modules/{module_id}/lessons", response_model=ModuleDetailResponse)
async def module_lessons(
    module_id: str,
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    try:
        return ContentTreeService.get_module(db, module_id, author_id=therapist.id)
    except NotFoundError as e:
        raise DetailNotFound("/therapist-admin/modules", e.message)


@router.post("/modules/{module_id}/lessons", response_model=LessonResponse)
async def add_lesson(
    module_id: str,
    payload: LessonPayload,
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    ContentTreeService.get_module(db, module_id, author_id=therapist.id)
    return ContentTreeService.create_lesson(db, module_id, payload.title, order=payload.order)


@router.get("/modules/{module_id}/lessons/{lesson_id}", response_model=LessonDetailResponse)
async def lesson_steps(
    module_id: str,
    lesson_id: str,
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    try:
        ContentTreeService.get_module(db, module_id, author_id=therapist.id)
        return ContentTreeService.get_lesson(db, lesson_id, module_id)
    except NotFoundError as e:
        raise DetailNotFound(f"/therapist-admin/modules/{module_id}/lessons", e.message)


@router.delete("/modules/{module_id}/lessons/{lesson_id}", response_model=ActionResult)
async def delete_lesson(
    module_id: str,
    lesson_id: str,
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    ContentTreeService.get_module(db, module_id, author_id=therapist.id)
    ContentTreeService.delete_lesson(db, lesson_id, module_id)
    return ActionResult(message="Lesson deleted")


@router.post("/modules/{module_id}/lessons/{lesson_id}/steps", response_model=StepResponse)
async def add_step(
    module_id: str,
    lesson_id: str,
    payload: StepPayload,
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    ContentTreeService.get_module(db, module_id, author_id=therapist.id)
    ContentTreeService.get_lesson(db, lesson_id, module_id)
    return ContentTreeService.create_step(
        db,
        lesson_id,
        payload.type,
        content=payload.content,
        prompt_question=payload.prompt_question,
        order=payload.order,
    )


@router.put("/modules/{module_id}/lessons/{lesson_id}/steps/{step_id}", response_model=StepResponse)
async def update_step(
    module_id: str,
    lesson_id: str,
    step_id: str,
    payload: StepUpdatePayload,
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    ContentTreeService.get_module(db, module_id, author_id=therapist.id)
    ContentTreeService.get_lesson(db, lesson_id, module_id)
    return ContentTreeService.update_step(
        db,
        step_id,
        payload.type,
        payload.order,
        content=payload.content,
        prompt_question=payload.prompt_question,
        lesson_id=lesson_id,
    )


@router.delete("/modules/{module_id}/lessons/{lesson_id}/steps/{step_id}", response_model=ActionResult)
async def delete_step(
    module_id: str,
    lesson_id: str,
    step_id: str,
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    ContentTreeService.get_module(db, module_id, author_id=therapist.id)
    ContentTreeService.get_lesson(db, lesson_id, module_id)
    ContentTreeService.delete_step(db, step_id, lesson_id)
    return ActionResult(message="Step deleted")


# --- Articles ---

@router.get("/articles", response_model=List[ArticleResponse])
async def list_my_articles(
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    return ArticleService.list_articles(db, author=therapist.id)


@router.post("/articles", response_model=ArticleResponse)
async def publish_article(
    payload: ArticlePayload,
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    fields = payload.model_dump(exclude={"author"})
    return ArticleService.create_article(db, author=therapist.id, **fields)


@router.get("/articles/{article_id}", response_model=ArticleResponse)
async def get_article(
    article_id: str,
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    try:
        return ArticleService.get_article(db, article_id, author=therapist.id)
    except NotFoundError as e:
        raise DetailNotFound("/therapist-admin/articles", e.message)


@router.put("/articles/{article_id}", response_model=ArticleResponse)
async def update_article(
    article_id: str,
    payload: ArticlePayload,
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    fields = payload.model_dump(exclude={"author"})
    return ArticleService.update_article(db, article_id, author=therapist.id, owner=therapist.id, **fields)


@router.delete("/articles/{article_id}", response_model=ActionResult)
async def delete_article(
    article_id: str,
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    ArticleService.delete_article(db, article_id, owner=therapist.id)
    return ActionResult(message="Article deleted")


# --- Community ---

@router.get("/community", response_model=List[ForumResponse])
async def list_forums(
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    return ContentTreeService.list_forums(db)


@router.get("/community/thread/{thread_id}", response_model=ThreadDetailResponse)
async def get_thread(
    thread_id: str,
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    try:
        thread = ContentTreeService.get_thread(db, thread_id)
    except NotFoundError as e:
        raise DetailNotFound("/therapist-admin/community", e.message)
    return ThreadDetailResponse(
        **ThreadResponse.from_thread(thread).model_dump(),
        comments=[CommentResponse.from_comment(c) for c in ContentTreeService.list_comments(db, thread_id)],
    )


@router.post("/community/thread/{thread_id}/comments", response_model=CommentResponse)
async def reply_to_thread(
    thread_id: str,
    payload: CommentPayload,
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    comment = ContentTreeService.add_comment(db, thread_id, therapist.id, payload.content)
    return CommentResponse.from_comment(comment)


@router.get("/community/{forum_id}", response_model=ForumDetailResponse)
async def get_forum(
    forum_id: str,
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    try:
        forum = ContentTreeService.get_forum(db, forum_id)
    except NotFoundError as e:
        raise DetailNotFound("/therapist-admin/community", e.message)
    return ForumDetailResponse(
        **ForumResponse.model_validate(forum).model_dump(),
        threads=[ThreadResponse.from_thread(t) for t in ContentTreeService.list_threads(db, forum_id)],
    )


# --- Live sessions ---

@router.get("/sessions", response_model=List[LiveSessionResponse])
async def list_sessions(
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    return BookingService.list_live_sessions(db, therapist.id)


@router.post("/sessions", response_model=LiveSessionResponse)
async def publish_session(
    payload: LiveSessionPayload,
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    return BookingService.create_live_session(
        db,
        therapist.id,
        payload.title,
        payload.start_time,
        end_time=payload.end_time,
        meeting_link=payload.meeting_link,
    )


@router.get("/sessions/{session_id}", response_model=LiveSessionResponse)
async def get_session(
    session_id: str,
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    try:
        return BookingService.get_live_session(db, therapist.id, session_id)
    except NotFoundError as e:
        raise DetailNotFound("/therapist-admin/sessions", e.message)


@router.put("/sessions/{session_id}", response_model=LiveSessionResponse)
async def update_session(
    session_id: str,
    payload: LiveSessionPayload,
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    return BookingService.update_live_session(db, therapist.id, session_id, **payload.model_dump())


@router.delete("/sessions/{session_id}", response_model=ActionResult)
async def delete_session(
    session_id: str,
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    BookingService.delete_live_session(db, therapist.id, session_id)
    return ActionResult(message="Session deleted")


# --- Profile & uploads ---

@router.get("/profile", response_model=ProfileResponse)
async def my_profile(therapist: Profile = Depends(get_current_therapist)):
    return therapist


@router.put("/profile", response_model=ProfileResponse)
async def edit_profile(
    payload: ProfileUpdatePayload,
    therapist: Profile = Depends(get_current_therapist),
    db: Session = Depends(get_db)
):
    return ProfileService.update_own_profile(db, therapist, **payload.model_dump(exclude_unset=True))


@router.post("/uploads/{entity_type}", response_model=UploadResponse)
async def upload_image(
    entity_type: str,
    file: UploadFile = File(...),
    therapist: Profile = Depends(get_current_therapist),
    storage: StorageService = Depends(get_storage_service)
):
    """
    Store a module/article cover or an avatar and return its public URL.
    """
    path = build_storage_path(entity_type, therapist.id, file.filename or "upload")
    data = await file.read()
    storage.upload(settings.AVATAR_BUCKET, path, data, file.content_type or "application/octet-stream")
    return UploadResponse(path=path, url=storage.get_public_url(settings.AVATAR_BUCKET, path))
