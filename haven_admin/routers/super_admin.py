"""
Super-admin dashboard (/supa)

Platform statistics, the approvals queue, the user directory and per-user
detail with suspend/restore/role change/delete.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from haven_admin.core.error_handling import DetailNotFound, NotFoundError
from haven_admin.database import get_db
from haven_admin.dependencies import get_current_super_admin
from haven_admin.models.profile import Profile
from haven_admin.schemas.admin_schemas import (
    ApprovePayload,
    ProfileResponse,
    RoleChangePayload,
    StatsResponse,
    UserDetailResponse,
)
from haven_admin.schemas.content_schemas import ActionResult, ArticleResponse, ModuleResponse
from haven_admin.schemas.scheduling_schemas import AppointmentResponse, PatientSummary
from haven_admin.services.role_workflow import PendingRoleEdits, RoleWorkflowService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/supa", tags=["Super Admin"])


@router.get("", response_model=StatsResponse)
async def overview(
    admin: Profile = Depends(get_current_super_admin),
    db: Session = Depends(get_db)
):
    return RoleWorkflowService.overview_stats(db)


@router.get("/approvals", response_model=List[ProfileResponse])
async def pending_approvals(
    admin: Profile = Depends(get_current_super_admin),
    db: Session = Depends(get_db)
):
    return RoleWorkflowService.list_pending(db)


@router.post("/approvals/{profile_id}", response_model=ActionResult)
async def approve_user(
    profile_id: str,
    payload: ApprovePayload,
    admin: Profile = Depends(get_current_super_admin),
    db: Session = Depends(get_db)
):
    """
    Approve a pending user with the role selected in the queue (or their
    current role when none was selected).
    """
    edits = PendingRoleEdits(payload.role_edits)
    profile = RoleWorkflowService.approve_and_assign(db, profile_id, edits)
    logger.info(f"Super admin {admin.id} approved {profile_id}")
    return ActionResult(message=f"User active as {profile.role}")


@router.get("/users", response_model=List[ProfileResponse])
async def user_directory(
    admin: Profile = Depends(get_current_super_admin),
    db: Session = Depends(get_db)
):
    return RoleWorkflowService.list_directory(db)


@router.get("/view/{profile_id}", response_model=UserDetailResponse)
async def user_detail(
    profile_id: str,
    admin: Profile = Depends(get_current_super_admin),
    db: Session = Depends(get_db)
):
    try:
        detail = RoleWorkflowService.user_detail(db, profile_id)
    except NotFoundError as e:
        raise DetailNotFound("/supa", e.message)

    return UserDetailResponse(
        profile=ProfileResponse.model_validate(detail.profile),
        appointments=[AppointmentResponse.from_appointment(a) for a in detail.appointments],
        patients=[PatientSummary.model_validate(p) for p in detail.patients],
        modules=[ModuleResponse.model_validate(m) for m in detail.modules],
        articles=[ArticleResponse.model_validate(a) for a in detail.articles],
    )


@router.post("/view/{profile_id}/suspend", response_model=ActionResult)
async def suspend_user(
    profile_id: str,
    admin: Profile = Depends(get_current_super_admin),
    db: Session = Depends(get_db)
):
    RoleWorkflowService.suspend(db, profile_id)
    return ActionResult(message="User Suspended")


@router.post("/view/{profile_id}/restore", response_model=ActionResult)
async def restore_user(
    profile_id: str,
    admin: Profile = Depends(get_current_super_admin),
    db: Session = Depends(get_db)
):
    RoleWorkflowService.restore(db, profile_id)
    return ActionResult(message="Access Restored")


@router.put("/view/{profile_id}/role", response_model=ProfileResponse)
async def change_role(
    profile_id: str,
    payload: RoleChangePayload,
    admin: Profile = Depends(get_current_super_admin),
    db: Session = Depends(get_db)
):
    return RoleWorkflowService.change_role(db, profile_id, payload.role)


@router.delete("/view/{profile_id}", response_model=ActionResult)
async def delete_user(
    profile_id: str,
    admin: Profile = Depends(get_current_super_admin),
    db: Session = Depends(get_db)
):
    RoleWorkflowService.delete_profile(db, profile_id)
    logger.info(f"Super admin {admin.id} deleted profile {profile_id}")
    return ActionResult(message="User deleted successfully")
