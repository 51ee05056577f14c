import logging

from fastapi import APIRouter, Depends, HTTPException, status

from portal.application.role_workflow import RoleAssignmentWorkflow
from portal.application.user_directory import DirectoryError, UserDirectory
from portal.core.domain.user import MalformedPersistedData
from portal.interfaces.api.deps import get_directory, require_admin, require_signed_in
from portal.interfaces.api.schemas import (
    DirectoryReplaceRequest,
    DirectoryResponse,
    UserRecord,
    UserUpdate,
)

router = APIRouter()
logger = logging.getLogger("directory")


@router.patch("/users/me", response_model=UserRecord)
def update_me(
    payload: UserUpdate,
    workflow: RoleAssignmentWorkflow = Depends(require_signed_in),
) -> UserRecord:
    if workflow.role is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Select a role first."
        )
    updated = workflow.update_user(payload.changes())
    if updated is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="User not found in directory."
        )
    return UserRecord.from_user(updated)


@router.get("/directory", response_model=DirectoryResponse)
def list_directory(
    _: RoleAssignmentWorkflow = Depends(require_admin),
    directory: UserDirectory = Depends(get_directory),
) -> DirectoryResponse:
    return DirectoryResponse(users=[UserRecord.from_user(u) for u in directory.all()])


@router.put("/directory", response_model=DirectoryResponse)
def replace_directory(
    payload: DirectoryReplaceRequest,
    workflow: RoleAssignmentWorkflow = Depends(require_admin),
    directory: UserDirectory = Depends(get_directory),
) -> DirectoryResponse:
    try:
        users = directory.replace_all([record.to_user() for record in payload.users])
    except (DirectoryError, MalformedPersistedData) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    logger.info(
        "directory_replace_by_admin",
        extra={"admin_id": workflow.state.identity_id, "count": len(users)},
    )
    return DirectoryResponse(users=[UserRecord.from_user(u) for u in users])
