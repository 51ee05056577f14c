import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.concurrency import run_in_threadpool

from portal.application.role_workflow import RoleAssignmentWorkflow
from portal.application.user_directory import UserDirectory
from portal.core.domain.session import AuthenticatedNoRole, InvalidTransition, identity_id_of
from portal.infrastructure.security import role_claims
from portal.interfaces.api.deps import get_directory, get_workflow, require_signed_in
from portal.interfaces.api.schemas import (
    RoleSelectRequest,
    SessionResponse,
    UserRecord,
    ViewDescriptorOut,
)

router = APIRouter()
logger = logging.getLogger("session")


def build_session_response(
    workflow: RoleAssignmentWorkflow, directory: UserDirectory
) -> SessionResponse:
    descriptor = workflow.view()
    user = workflow.current_user()
    all_users = None
    if descriptor is not None and descriptor.receives_all_users:
        all_users = [UserRecord.from_user(u) for u in directory.all()]
    return SessionResponse(
        state=workflow.state.name,
        identity_id=identity_id_of(workflow.state),
        role=getattr(workflow.role, "value", workflow.role),
        active_page=workflow.active_page if descriptor is not None else None,
        view=ViewDescriptorOut.from_descriptor(descriptor) if descriptor else None,
        user=UserRecord.from_user(user) if user else None,
        all_users=all_users,
    )


@router.get("/session", response_model=SessionResponse)
async def get_session(
    page: Optional[str] = Query(default=None, min_length=1),
    workflow: RoleAssignmentWorkflow = Depends(get_workflow),
    directory: UserDirectory = Depends(get_directory),
) -> SessionResponse:
    if page and workflow.role is not None:
        workflow.navigate(page)
    return build_session_response(workflow, directory)


@router.post("/session/role", response_model=SessionResponse)
async def select_role(
    payload: RoleSelectRequest,
    workflow: RoleAssignmentWorkflow = Depends(require_signed_in),
    directory: UserDirectory = Depends(get_directory),
) -> SessionResponse:
    state = workflow.state
    if not isinstance(state, AuthenticatedNoRole):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Role already assigned."
        )

    try:
        await run_in_threadpool(role_claims.claim, state.identity_id)
    except role_claims.RoleClaimBusy:
        logger.warning(
            "role_claim_busy", extra={"identity_id": state.identity_id}
        )
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Role assignment already in progress.",
        )

    try:
        await workflow.select_role(payload.role)
    except InvalidTransition as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    finally:
        await run_in_threadpool(role_claims.release, state.identity_id)

    # A rejected provider commit leaves the state at no_role; the caller sees that state.
    return build_session_response(workflow, directory)


@router.post("/session/sign-out", response_model=SessionResponse)
async def sign_out(
    workflow: RoleAssignmentWorkflow = Depends(require_signed_in),
    directory: UserDirectory = Depends(get_directory),
) -> SessionResponse:
    await workflow.sign_out()
    return build_session_response(workflow, directory)
