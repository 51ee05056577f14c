import asyncio
import logging
from typing import Any, Dict, Optional

from portal.application.auth_session import AuthSession
from portal.application.user_directory import UserDirectory
from portal.application.view_router import DEFAULT_PAGE, ViewDescriptor, landing_page, route
from portal.core.domain.identity import Identity, ProviderError
from portal.core.domain.session import (
    AuthenticatedNoRole,
    AuthenticatedWithRole,
    InvalidTransition,
    Loading,
    SessionState,
    Unauthenticated,
    check_transition,
    identity_id_of,
    role_of,
)
from portal.core.domain.user import DEFAULT_PROFILE, Role, User

logger = logging.getLogger("session")


def user_from_identity(identity: Identity, role: str) -> User:
    return User(
        id=identity.id,
        name=identity.display_name or "User",
        email=identity.email or "",
        role=role,
        profile=dict(DEFAULT_PROFILE),
    )


class RoleAssignmentWorkflow:
    """
    Reconciles the provider identity with the user directory and tracks the
    resolved session role.

    The role is only applied locally after the provider confirms the metadata
    write. Reconciliation is idempotent: re-running it against an unchanged
    identity never duplicates or rewrites a directory entry.
    """

    def __init__(self, auth: AuthSession, directory: UserDirectory) -> None:
        self._auth = auth
        self._directory = directory
        self.state: SessionState = Loading()
        self.active_page: str = DEFAULT_PAGE
        self._role_request_in_flight = False

    @property
    def role(self) -> Optional[str]:
        return role_of(self.state)

    @property
    def role_request_in_flight(self) -> bool:
        return self._role_request_in_flight

    def _move(self, target: SessionState) -> SessionState:
        previous = self.state
        self.state = check_transition(previous, target)
        if isinstance(target, AuthenticatedWithRole) and (
            not isinstance(previous, AuthenticatedWithRole)
            or previous.identity_id != target.identity_id
        ):
            self.active_page = landing_page(target.role)
        if previous != target:
            logger.info(
                "session_transition",
                extra={
                    "from_state": previous.name,
                    "to_state": target.name,
                    "identity_id": identity_id_of(target) or identity_id_of(previous),
                },
            )
        return self.state

    async def load(self) -> SessionState:
        await self._auth.await_load()
        # Reconciliation may write to a blocking store backend.
        return await asyncio.to_thread(self.reconcile)

    def reconcile(self) -> SessionState:
        if not self._auth.loaded:
            return self._move(Loading())
        identity = self._auth.identity
        if identity is None:
            return self._move(Unauthenticated())
        role = identity.role
        if role is None:
            return self._move(AuthenticatedNoRole(identity.id))
        self._directory.upsert(identity.id, lambda: user_from_identity(identity, role))
        return self._move(AuthenticatedWithRole(identity.id, role))

    async def select_role(self, role: Any) -> SessionState:
        selected = Role(getattr(role, "value", role))
        current = self.state
        if not isinstance(current, AuthenticatedNoRole):
            raise InvalidTransition(f"Role selection is not allowed from {current.name}.")
        if self._role_request_in_flight:
            logger.warning(
                "role_request_ignored",
                extra={"identity_id": current.identity_id, "role": selected.value},
            )
            return self.state

        self._role_request_in_flight = True
        try:
            updated = await self._auth.set_role(selected)
        except ProviderError as exc:
            logger.warning(
                "role_commit_failed",
                extra={
                    "identity_id": current.identity_id,
                    "role": selected.value,
                    "error": str(exc),
                },
            )
            return self.state
        finally:
            self._role_request_in_flight = False

        if self.state != current:
            # Signed out (or re-reconciled) while the commit was pending.
            logger.info(
                "role_commit_stale",
                extra={"identity_id": current.identity_id, "state": self.state.name},
            )
            return self.state

        identity = updated or self._auth.identity
        if identity is None or identity.id != current.identity_id:
            identity = Identity(id=current.identity_id, display_name="", email="")
        await asyncio.to_thread(
            self._directory.upsert, identity.id, lambda: user_from_identity(identity, selected)
        )
        self._move(AuthenticatedWithRole(identity.id, selected))
        self.active_page = landing_page(selected)
        logger.info(
            "role_assigned",
            extra={"identity_id": identity.id, "role": selected.value},
        )
        return self.state

    async def sign_out(self) -> SessionState:
        try:
            await self._auth.sign_out()
        except ProviderError as exc:
            logger.warning(
                "sign_out_failed",
                extra={"identity_id": identity_id_of(self.state), "error": str(exc)},
            )
            return self.state
        self.active_page = DEFAULT_PAGE
        return self._move(Unauthenticated())

    def navigate(self, page: str) -> str:
        self.active_page = page
        return self.active_page

    def update_user(self, updates: Dict[str, Any]) -> Optional[User]:
        state = self.state
        if not isinstance(state, AuthenticatedWithRole):
            logger.debug("user_update_skipped", extra={"state": state.name})
            return None
        return self._directory.merge(state.identity_id, updates)

    def current_user(self) -> Optional[User]:
        state = self.state
        if not isinstance(state, AuthenticatedWithRole):
            return None
        stored = self._directory.get(state.identity_id)
        if stored is not None:
            return stored
        identity = self._auth.identity
        return User(
            id=state.identity_id,
            name=(identity.display_name if identity else "") or "User",
            email=identity.email if identity else "",
            role=state.role,
        )

    def view(self) -> Optional[ViewDescriptor]:
        if not isinstance(self.state, AuthenticatedWithRole):
            return None
        return route(self.state.role, self.active_page)
