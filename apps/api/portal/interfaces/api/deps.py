from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from portal.application.auth_session import AuthSession
from portal.application.preferences import PreferenceStore
from portal.application.role_workflow import RoleAssignmentWorkflow
from portal.application.user_directory import UserDirectory
from portal.core.domain.identity import IdentityProvider
from portal.core.domain.session import AuthenticatedWithRole
from portal.core.domain.user import Role
from portal.infrastructure.identity.remote_provider import RemoteIdentityProvider

bearer_scheme = HTTPBearer(auto_error=False)


def get_identity_provider(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> IdentityProvider:
    token = credentials.credentials if credentials else None
    return RemoteIdentityProvider(token)


def get_auth_session(
    provider: IdentityProvider = Depends(get_identity_provider),
) -> AuthSession:
    return AuthSession(provider)


def get_directory(request: Request) -> UserDirectory:
    directory = getattr(request.app.state, "directory", None)
    if directory is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="User directory not initialized.",
        )
    return directory


def get_preferences(request: Request) -> PreferenceStore:
    preferences = getattr(request.app.state, "preferences", None)
    if preferences is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Preferences not initialized.",
        )
    return preferences


async def get_workflow(
    auth: AuthSession = Depends(get_auth_session),
    directory: UserDirectory = Depends(get_directory),
) -> RoleAssignmentWorkflow:
    workflow = RoleAssignmentWorkflow(auth, directory)
    await workflow.load()
    return workflow


def require_signed_in(
    workflow: RoleAssignmentWorkflow = Depends(get_workflow),
) -> RoleAssignmentWorkflow:
    if workflow.state.name not in ("no_role", "with_role"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Sign-in required."
        )
    return workflow


def require_admin(
    workflow: RoleAssignmentWorkflow = Depends(require_signed_in),
) -> RoleAssignmentWorkflow:
    state = workflow.state
    if not isinstance(state, AuthenticatedWithRole) or state.role != Role.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required."
        )
    return workflow
