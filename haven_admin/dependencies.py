from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from haven_admin.config import settings
from haven_admin.core.access_control import Area, AuthorizationGate, GateDecision
from haven_admin.core.error_handling import GateRedirect
from haven_admin.database import get_db
from haven_admin.models.profile import Profile
from haven_admin.services.identity_service import IdentityProvider

bearer_scheme = HTTPBearer(auto_error=False)


async def get_session_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    """Session token from the Authorization header, else from the session cookie."""
    if credentials is not None:
        return credentials.credentials
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def get_identity_provider(db: Session = Depends(get_db)) -> IdentityProvider:
    return IdentityProvider(db)


def require_area(area: Area):
    """
    Dependency factory that runs the authorization gate for one area.
    Usage: decision = Depends(require_area(Area.THERAPIST))
    """
    async def gate(
        token: Optional[str] = Depends(get_session_token),
        db: Session = Depends(get_db),
    ) -> GateDecision:
        provider = IdentityProvider(db)
        auth_session = provider.get_session(token)
        profile = None
        if auth_session is not None:
            profile = db.query(Profile).filter(Profile.id == auth_session.user_id).first()

        decision = AuthorizationGate.evaluate(area, auth_session, profile)
        if not decision.allowed:
            if decision.sign_out and auth_session is not None:
                provider.sign_out_session(auth_session)
            raise GateRedirect(decision.redirect_to, decision.notice, clear_session=decision.sign_out)
        return decision
    return gate


staff_gate = require_area(Area.STAFF_ADMIN)
therapist_gate = require_area(Area.THERAPIST)
super_admin_gate = require_area(Area.SUPER_ADMIN)


async def get_current_therapist(decision: GateDecision = Depends(therapist_gate)) -> Profile:
    return decision.profile


async def get_current_super_admin(decision: GateDecision = Depends(super_admin_gate)) -> Profile:
    return decision.profile
