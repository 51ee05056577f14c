from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional, Union


class InvalidTransition(Exception):
    pass


@dataclass(frozen=True)
class Loading:
    name = "loading"


@dataclass(frozen=True)
class Unauthenticated:
    name = "unauthenticated"


@dataclass(frozen=True)
class AuthenticatedNoRole:
    identity_id: str
    name = "no_role"


@dataclass(frozen=True)
class AuthenticatedWithRole:
    identity_id: str
    role: str
    name = "with_role"


SessionState = Union[Loading, Unauthenticated, AuthenticatedNoRole, AuthenticatedWithRole]

# Allowed moves, keyed by state name. Self-loops cover reconciliation re-runs.
# with_role -> no_role happens only when identity metadata loses its role upstream.
TRANSITIONS: Dict[str, FrozenSet[str]] = {
    Loading.name: frozenset({"loading", "unauthenticated", "no_role", "with_role"}),
    Unauthenticated.name: frozenset({"unauthenticated", "no_role", "with_role"}),
    AuthenticatedNoRole.name: frozenset({"no_role", "with_role", "unauthenticated"}),
    AuthenticatedWithRole.name: frozenset({"with_role", "no_role", "unauthenticated"}),
}


def check_transition(current: SessionState, target: SessionState) -> SessionState:
    allowed = TRANSITIONS.get(current.name, frozenset())
    if target.name not in allowed:
        raise InvalidTransition(f"{current.name} -> {target.name} is not allowed.")
    return target


def identity_id_of(state: SessionState) -> Optional[str]:
    return getattr(state, "identity_id", None)


def role_of(state: SessionState) -> Optional[str]:
    return getattr(state, "role", None)
