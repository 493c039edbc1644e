from haven_admin.models.profile import Account, AuthSession, Profile, Role, ProfileStatus
from haven_admin.models.content import Module, Lesson, LessonStep, ModuleCategory, StepType
from haven_admin.models.article import Article, ArticleComment, ArticleCategory
from haven_admin.models.community import Forum, Thread, Comment
from haven_admin.models.journal import JournalEntry
from haven_admin.models.scheduling import (
    Appointment,
    AppointmentStatus,
    LiveSession,
    Notification
)

__all__ = [
    "Account",
    "AuthSession",
    "Profile",
    "Role",
    "ProfileStatus",
    "Module",
    "Lesson",
    "LessonStep",
    "ModuleCategory",
    "StepType",
    "Article",
    "ArticleComment",
    "ArticleCategory",
    "Forum",
    "Thread",
    "Comment",
    "JournalEntry",
    "Appointment",
    "AppointmentStatus",
    "LiveSession",
    "Notification",
]
