"""
Role & approval workflow

Profiles start as pending at sign-up; a super-admin approves them into a
role, suspends (banned) or restores them, changes roles, or deletes them.
A specialty only ever lives on a therapist profile.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from urllib.parse import quote

from sqlalchemy import or_
from sqlalchemy.orm import Session

from haven_admin.core.error_handling import NotFoundError, ValidationFailed
from haven_admin.models.article import Article
from haven_admin.models.content import Module
from haven_admin.models.profile import Account, Profile, ProfileStatus, Role
from haven_admin.models.scheduling import Appointment
from haven_admin.services.store import commit_or_raise

logger = logging.getLogger(__name__)

GENERAL_THERAPIST = "General Therapist"
DEFAULT_AVATAR_URL = "https://ui-avatars.com/api/?name={name}&background=random"
USER_NOT_FOUND_NOTICE = "User not found or access denied"

ROLE_VALUES = {role.value for role in Role}


def ensure_specialty_allowed(role: Optional[str], specialty: Optional[str]) -> None:
    if specialty and role != Role.THERAPIST.value:
        raise ValidationFailed("A specialty can only be set on a therapist profile.")


def normalize_requested_role(requested: Optional[str]) -> str:
    """Sign-up form choice to stored role: ADMIN means staff admin, anything else therapist."""
    if requested in ("ADMIN", Role.STAFF_ADMIN.value):
        return Role.STAFF_ADMIN.value
    return Role.THERAPIST.value


def _validate_role(role: str) -> str:
    if role not in ROLE_VALUES:
        raise ValidationFailed(f"Unknown role: {role}")
    return role


class PendingRoleEdits:
    """
    Role selections made in the approvals queue but not saved yet.

    Lives for one request only; nothing here is persisted.
    """

    def __init__(self, edits: Optional[Dict[str, str]] = None):
        self._edits: Dict[str, str] = {}
        for profile_id, role in (edits or {}).items():
            self.select(profile_id, role)

    def select(self, profile_id: str, role: str) -> None:
        self._edits[profile_id] = _validate_role(role)

    def get(self, profile_id: str) -> Optional[str]:
        return self._edits.get(profile_id)

    def discard(self, profile_id: str) -> None:
        self._edits.pop(profile_id, None)

    def resolve(self, profile: Profile) -> str:
        """Selected role, else the profile's current role, else therapist."""
        return self._edits.get(profile.id) or profile.role or Role.THERAPIST.value

    def __len__(self):
        return len(self._edits)


@dataclass
class UserDetail:
    profile: Profile
    appointments: List[Appointment] = field(default_factory=list)
    patients: List[Profile] = field(default_factory=list)
    modules: List[Module] = field(default_factory=list)
    articles: List[Article] = field(default_factory=list)


class RoleWorkflowService:

    @staticmethod
    def register_pending_profile(
        db: Session,
        account: Account,
        full_name: str,
        requested_role: str,
        specialty: Optional[str] = None,
    ) -> Profile:
        """
        Create the pending profile that goes with a new account.

        Args:
            db: Database session
            account: Account returned by the identity provider
            full_name: Display name
            requested_role: Therapist or staff admin; anything else is refused
            specialty: Therapist specialty

        Returns:
            The pending Profile (the existing one if it was already created)
        """
        if requested_role not in (Role.THERAPIST.value, Role.STAFF_ADMIN.value):
            raise ValidationFailed("Sign-up is only open to therapists and staff admins.")
        specialty = (specialty or "").strip() or None
        ensure_specialty_allowed(requested_role, specialty)

        existing = db.query(Profile).filter(Profile.id == account.id).first()
        if existing:
            return existing

        profile = Profile(
            id=account.id,
            email=account.email,
            full_name=full_name,
            role=requested_role,
            specialty=specialty,
            status=ProfileStatus.PENDING.value,
            avatar_url=DEFAULT_AVATAR_URL.format(name=quote(full_name or "")),
        )
        db.add(profile)
        commit_or_raise(db, "create profile")
        db.refresh(profile)
        logger.info(f"Created pending profile {profile.id} requesting role {requested_role}")
        return profile

    @staticmethod
    def get_profile(db: Session, profile_id: str) -> Profile:
        profile = db.query(Profile).filter(Profile.id == profile_id).first()
        if not profile:
            raise NotFoundError(USER_NOT_FOUND_NOTICE)
        return profile

    @staticmethod
    def list_pending(db: Session) -> List[Profile]:
        return (
            db.query(Profile)
            .filter(Profile.status == ProfileStatus.PENDING.value)
            .order_by(Profile.created_at)
            .all()
        )

    @staticmethod
    def list_directory(db: Session) -> List[Profile]:
        return db.query(Profile).order_by(Profile.created_at.desc()).all()

    @staticmethod
    def _apply_role(profile: Profile, role: str) -> None:
        profile.role = role
        if role == Role.THERAPIST.value:
            if not profile.specialty:
                profile.specialty = GENERAL_THERAPIST
        else:
            profile.specialty = None

    @staticmethod
    def approve_and_assign(db: Session, profile_id: str, edits: Optional[PendingRoleEdits] = None) -> Profile:
        """
        Activate a profile and save its role in one update.

        Args:
            db: Database session
            profile_id: Profile to approve
            edits: Pending role selections from the approvals queue

        Returns:
            The updated Profile
        """
        if edits is None:
            edits = PendingRoleEdits()
        profile = RoleWorkflowService.get_profile(db, profile_id)
        final_role = _validate_role(edits.resolve(profile))

        profile.status = ProfileStatus.ACTIVE.value
        RoleWorkflowService._apply_role(profile, final_role)
        commit_or_raise(db, "approve user")
        edits.discard(profile_id)

        db.refresh(profile)
        logger.info(f"Profile {profile_id} approved as {final_role}")
        return profile

    @staticmethod
    def change_role(db: Session, profile_id: str, role: str) -> Profile:
        """Change the role without touching status."""
        profile = RoleWorkflowService.get_profile(db, profile_id)
        RoleWorkflowService._apply_role(profile, _validate_role(role))
        commit_or_raise(db, "change role")
        db.refresh(profile)
        logger.info(f"Profile {profile_id} role changed to {role}")
        return profile

    @staticmethod
    def _set_status(db: Session, profile_id: str, status: ProfileStatus) -> Profile:
        profile = RoleWorkflowService.get_profile(db, profile_id)
        profile.status = status.value
        commit_or_raise(db, "update user status")
        db.refresh(profile)
        logger.info(f"Profile {profile_id} status set to {status.value}")
        return profile

    @staticmethod
    def suspend(db: Session, profile_id: str) -> Profile:
        return RoleWorkflowService._set_status(db, profile_id, ProfileStatus.BANNED)

    @staticmethod
    def restore(db: Session, profile_id: str) -> Profile:
        return RoleWorkflowService._set_status(db, profile_id, ProfileStatus.ACTIVE)

    @staticmethod
    def delete_profile(db: Session, profile_id: str) -> None:
        """
        Remove the profile row only. Appointments, content and comments that
        reference it keep the dangling id.
        """
        profile = RoleWorkflowService.get_profile(db, profile_id)
        db.delete(profile)
        commit_or_raise(db, "delete user")
        logger.info(f"Profile {profile_id} deleted")

    @staticmethod
    def overview_stats(db: Session) -> Dict[str, int]:
        profiles = db.query(Profile).all()
        users = [
            p for p in profiles
            if not p.specialty and p.role not in (Role.THERAPIST.value, Role.STAFF_ADMIN.value)
        ]
        return {
            "users": len(users),
            "therapists": len([p for p in profiles if p.is_therapist]),
            "pending": len([p for p in profiles if p.status == ProfileStatus.PENDING.value]),
            "appointments": db.query(Appointment).count(),
        }

    @staticmethod
    def user_detail(db: Session, profile_id: str) -> UserDetail:
        profile = db.query(Profile).filter(Profile.id == profile_id).first()
        if not profile:
            raise NotFoundError(USER_NOT_FOUND_NOTICE)

        appointments = (
            db.query(Appointment)
            .filter(or_(Appointment.therapist_id == profile_id, Appointment.user_id == profile_id))
            .order_by(Appointment.scheduled_at.desc())
            .all()
        )
        detail = UserDetail(profile=profile, appointments=appointments)

        if profile.is_therapist:
            patients = {}
            for appointment in appointments:
                if appointment.therapist_id == profile_id and appointment.patient is not None:
                    patients[appointment.patient.id] = appointment.patient
            detail.patients = list(patients.values())
            detail.modules = db.query(Module).filter(Module.author_id == profile_id).all()
            detail.articles = db.query(Article).filter(Article.author == profile_id).all()

        return detail
