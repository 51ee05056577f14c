from dataclasses import dataclass
from typing import Dict, Optional

from portal.core.domain.user import Role, parse_role

NOT_RECOGNIZED_VIEW = "role_not_recognized"
NOT_RECOGNIZED_MESSAGE = "Role not recognized."


@dataclass(frozen=True)
class ViewDescriptor:
    view: str
    page: str
    role: Optional[str]
    recognized: bool = True
    receives_all_users: bool = False
    can_replace_all: bool = False
    message: Optional[str] = None


@dataclass(frozen=True)
class _RoleView:
    view: str
    landing_page: str
    receives_all_users: bool = False
    can_replace_all: bool = False


ROLE_VIEWS: Dict[Role, _RoleView] = {
    Role.PATIENT: _RoleView("patient_dashboard", "appointments", receives_all_users=True),
    Role.DOCTOR: _RoleView("doctor_dashboard", "appointments"),
    Role.ADMIN: _RoleView(
        "admin_dashboard", "dashboard", receives_all_users=True, can_replace_all=True
    ),
}

DEFAULT_PAGE = "appointments"


def landing_page(role: Optional[str]) -> str:
    entry = ROLE_VIEWS.get(parse_role(role))
    return entry.landing_page if entry else DEFAULT_PAGE


def route(role: Optional[str], page: str) -> ViewDescriptor:
    """Map a resolved role and requested sub-page to the view to present. Never raises."""
    normalized = parse_role(role)
    entry = ROLE_VIEWS.get(normalized) if isinstance(normalized, Role) else None
    if entry is None:
        return ViewDescriptor(
            view=NOT_RECOGNIZED_VIEW,
            page=page,
            role=None if normalized is None else str(getattr(normalized, "value", normalized)),
            recognized=False,
            message=NOT_RECOGNIZED_MESSAGE,
        )
    return ViewDescriptor(
        view=entry.view,
        page=page,
        role=normalized.value,
        receives_all_users=entry.receives_all_users,
        can_replace_all=entry.can_replace_all,
    )
