from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class Role(str, Enum):
    PATIENT = "PATIENT"
    DOCTOR = "DOCTOR"
    ADMIN = "ADMIN"


# Profile defaults for users created from a freshly resolved identity.
DEFAULT_PROFILE: Dict[str, Any] = {"age": "30", "bloodGroup": "O+"}

CORE_FIELDS = ("id", "name", "email", "role")


class MalformedPersistedData(Exception):
    pass


def parse_role(value: Optional[str]) -> Optional[str]:
    """
    Normalize a role value coming from identity metadata or storage.
    Known roles come back as Role members; anything else is passed through
    as a plain string so routing can fall back instead of failing.
    """
    if value is None or value == "":
        return None
    try:
        return Role(value)
    except ValueError:
        return str(value)


@dataclass
class User:
    id: str
    name: str
    email: str
    role: str
    profile: Dict[str, Any] = field(default_factory=dict)

    def to_record(self) -> Dict[str, Any]:
        role = self.role.value if isinstance(self.role, Role) else self.role
        record: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": role,
        }
        for key, value in self.profile.items():
            if key not in CORE_FIELDS:
                record[key] = value
        return record

    def merged(self, updates: Dict[str, Any]) -> "User":
        # id is the directory key and never changes.
        profile = dict(self.profile)
        for key, value in updates.items():
            if key not in CORE_FIELDS:
                profile[key] = value
        return User(
            id=self.id,
            name=self.name if updates.get("name") is None else updates["name"],
            email=self.email if updates.get("email") is None else updates["email"],
            role=parse_role(updates.get("role")) or self.role,
            profile=profile,
        )


def user_from_record(record: Any) -> User:
    if not isinstance(record, dict):
        raise MalformedPersistedData("User record must be a JSON object.")
    user_id = record.get("id")
    if not isinstance(user_id, str) or not user_id:
        raise MalformedPersistedData("User record is missing a string id.")
    return User(
        id=user_id,
        name=record.get("name") or "",
        email=record.get("email") or "",
        role=parse_role(record.get("role")) or "",
        profile={k: v for k, v in record.items() if k not in CORE_FIELDS},
    )
