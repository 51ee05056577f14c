from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from portal.application.view_router import ViewDescriptor
from portal.core.domain.user import Role, User, user_from_record


class UserRecord(BaseModel):
    """Flat user record; profile fields (age, bloodGroup, ...) ride along as extras."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(min_length=1)
    name: str = ""
    email: str = ""
    role: str = ""

    @classmethod
    def from_user(cls, user: User) -> "UserRecord":
        return cls(**user.to_record())

    def to_user(self) -> User:
        return user_from_record(self.model_dump())


class UserUpdate(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    email: Optional[str] = None

    @field_validator("name", "email", mode="before")
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("Field cannot be null.")
        return value

    def changes(self) -> Dict[str, Any]:
        # Self-service edits never touch the key or the directory role.
        provided = set(self.model_fields_set) | set(self.model_extra or {})
        data = {k: v for k, v in self.model_dump().items() if k in provided}
        data.pop("id", None)
        data.pop("role", None)
        return data


class ViewDescriptorOut(BaseModel):
    view: str
    page: str
    role: Optional[str] = None
    recognized: bool = True
    receives_all_users: bool = False
    can_replace_all: bool = False
    message: Optional[str] = None

    @classmethod
    def from_descriptor(cls, descriptor: ViewDescriptor) -> "ViewDescriptorOut":
        return cls(
            view=descriptor.view,
            page=descriptor.page,
            role=descriptor.role,
            recognized=descriptor.recognized,
            receives_all_users=descriptor.receives_all_users,
            can_replace_all=descriptor.can_replace_all,
            message=descriptor.message,
        )


class SessionResponse(BaseModel):
    state: str
    identity_id: Optional[str] = None
    role: Optional[str] = None
    active_page: Optional[str] = None
    view: Optional[ViewDescriptorOut] = None
    user: Optional[UserRecord] = None
    all_users: Optional[List[UserRecord]] = None


class RoleSelectRequest(BaseModel):
    role: Role


class DirectoryReplaceRequest(BaseModel):
    users: List[UserRecord]

    @field_validator("users")
    @classmethod
    def ensure_unique_ids(cls, users: List[UserRecord]) -> List[UserRecord]:
        ids = [u.id for u in users]
        if len(ids) != len(set(ids)):
            raise ValueError("User ids must be unique.")
        return users


class DirectoryResponse(BaseModel):
    users: List[UserRecord]


class ThemeResponse(BaseModel):
    dark: bool
    theme: str
