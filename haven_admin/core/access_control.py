"""
Authorization gate for the three dashboard areas

The gate is a pure decision over (area, session, profile); the FastAPI
dependency in haven_admin.dependencies loads the session and profile and
acts on the decision.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from haven_admin.core.error_handling import AccessDenied
from haven_admin.models.profile import AuthSession, Profile, ProfileStatus, Role

logger = logging.getLogger(__name__)

LOGIN_PATH = "/admin/login"
THERAPIST_DENIED_NOTICE = "Access Denied. This area is for Therapists only."
SUPER_ADMIN_DENIED_NOTICE = "Unauthorized"


class Area(str, enum.Enum):
    STAFF_ADMIN = "/admin"
    THERAPIST = "/therapist-admin"
    SUPER_ADMIN = "/supa"


# Paths inside a gated prefix that stay reachable without a session
UNGATED_PATHS = {"/admin/login", "/admin/signup"}


@dataclass
class GateDecision:
    allowed: bool
    redirect_to: Optional[str] = None
    notice: Optional[str] = None
    sign_out: bool = False
    session: Optional[AuthSession] = None
    profile: Optional[Profile] = None


class AuthorizationGate:
    """Decides whether a request may enter a dashboard area"""

    @staticmethod
    def area_for_path(path: str) -> Optional[Area]:
        path = path.rstrip("/") or "/"
        if path in UNGATED_PATHS:
            return None
        for area in Area:
            if path == area.value or path.startswith(area.value + "/"):
                return area
        return None

    @staticmethod
    def evaluate(
        area: Optional[Area],
        session: Optional[AuthSession],
        profile: Optional[Profile],
    ) -> GateDecision:
        """
        Decide access for one request.

        Args:
            area: Area the request targets, None for ungated paths
            session: Live session of the caller, None when missing or expired
            profile: Caller's profile, None when it has no profile row

        Returns:
            GateDecision; a denial names the redirect target, an optional
            notice and whether the session must be signed out first
        """
        if area is None:
            return GateDecision(allowed=True, session=session, profile=profile)

        if session is None:
            return GateDecision(allowed=False, redirect_to=LOGIN_PATH)

        if area == Area.STAFF_ADMIN:
            # Role checks for staff pages happen inside the pages themselves
            return GateDecision(allowed=True, session=session, profile=profile)

        if area == Area.THERAPIST:
            if profile is not None and profile.role == Role.THERAPIST.value:
                return GateDecision(allowed=True, session=session, profile=profile)
            logger.warning(f"Therapist area denied for user {session.user_id}")
            return GateDecision(
                allowed=False,
                redirect_to=LOGIN_PATH,
                notice=THERAPIST_DENIED_NOTICE,
                sign_out=True,
                session=session,
            )

        if profile is not None and profile.is_platform_admin:
            return GateDecision(allowed=True, session=session, profile=profile)
        logger.warning(f"Super-admin area denied for user {session.user_id}")
        return GateDecision(
            allowed=False,
            redirect_to="/",
            notice=SUPER_ADMIN_DENIED_NOTICE,
            session=session,
        )


def landing_path_for(profile: Optional[Profile]) -> str:
    """
    Dashboard a freshly signed-in user is sent to.

    Raises:
        AccessDenied: no profile, a banned profile, or a role with no dashboard
    """
    if profile is None:
        raise AccessDenied("Could not verify staff privileges.")
    if profile.status == ProfileStatus.BANNED.value:
        raise AccessDenied()
    if profile.is_platform_admin:
        return Area.SUPER_ADMIN.value
    if profile.is_therapist:
        return Area.THERAPIST.value
    if profile.role == Role.STAFF_ADMIN.value:
        return "/admin/modules"
    raise AccessDenied()
