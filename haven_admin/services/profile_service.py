import logging

from sqlalchemy.orm import Session

from haven_admin.models.profile import Profile
from haven_admin.services.role_workflow import ensure_specialty_allowed
from haven_admin.services.store import commit_or_raise

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("full_name", "specialty", "about", "phone_number", "address", "avatar_url")


class ProfileService:

    @staticmethod
    def update_own_profile(db: Session, profile: Profile, **fields) -> Profile:
        """
        Self-service profile edit; only the fields passed are changed.

        Args:
            db: Database session
            profile: The caller's own profile
            **fields: Any of EDITABLE_FIELDS
        """
        updates = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS}
        if "specialty" in updates:
            ensure_specialty_allowed(profile.role, updates["specialty"])

        for key, value in updates.items():
            setattr(profile, key, value)
        commit_or_raise(db, "save profile")
        db.refresh(profile)
        logger.info(f"Profile {profile.id} updated fields: {', '.join(sorted(updates))}")
        return profile
