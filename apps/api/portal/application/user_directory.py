import json
import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional

from portal.core.domain.fixtures import default_users
from portal.core.domain.user import MalformedPersistedData, User, user_from_record
from portal.infrastructure.store.base import DIRECTORY_KEY, PersistedStore

logger = logging.getLogger("directory")


class DirectoryError(Exception):
    pass


def parse_directory(raw: str) -> List[User]:
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise MalformedPersistedData(f"Directory payload is not JSON: {exc}") from exc
    if not isinstance(payload, list):
        raise MalformedPersistedData("Directory payload must be a JSON array.")
    users = [user_from_record(item) for item in payload]
    _ensure_unique(users, error=MalformedPersistedData)
    return users


def _ensure_unique(users: Iterable[User], error=DirectoryError) -> None:
    seen = set()
    for user in users:
        if user.id in seen:
            raise error(f"Duplicate user id: {user.id}")
        seen.add(user.id)


class UserDirectory:
    """
    Insertion-ordered cache of application users keyed by identity id.
    Every mutation writes the whole collection back to the store before returning.
    Store errors are not caught here; callers see them as-is.
    """

    def __init__(self, store: PersistedStore, key: str = DIRECTORY_KEY) -> None:
        self._store = store
        self._key = key
        self._users: List[User] = []
        # Writes may run in worker threads.
        self._lock = threading.RLock()

    def seed(self, default: Optional[Callable[[], List[User]]] = None) -> List[User]:
        fallback = default or default_users
        raw = self._store.get(self._key)
        if raw is None:
            self._users = list(fallback())
            return self.all()
        try:
            self._users = parse_directory(raw)
        except MalformedPersistedData as exc:
            logger.warning(
                "directory_seed_fallback",
                extra={"key": self._key, "reason": str(exc)},
            )
            self._users = list(fallback())
        return self.all()

    def all(self) -> List[User]:
        return list(self._users)

    def get(self, user_id: str) -> Optional[User]:
        for user in self._users:
            if user.id == user_id:
                return user
        return None

    def upsert(self, user_id: str, factory: Callable[[], User]) -> User:
        with self._lock:
            existing = self.get(user_id)
            if existing is not None:
                return existing
            created = factory()
            if created.id != user_id:
                raise DirectoryError(f"Factory produced id {created.id!r}, expected {user_id!r}.")
            self._users.append(created)
            self._persist()
        logger.info("directory_user_created", extra={"user_id": user_id, "role": created.to_record()["role"]})
        return created

    def merge(self, user_id: str, updates: Dict[str, Any]) -> Optional[User]:
        with self._lock:
            for idx, user in enumerate(self._users):
                if user.id == user_id:
                    merged = user.merged(updates)
                    self._users[idx] = merged
                    self._persist()
                    return merged
        return None

    def replace_all(self, users: List[User]) -> List[User]:
        new_users = list(users)
        _ensure_unique(new_users)
        with self._lock:
            self._users = new_users
            self._persist()
        logger.info("directory_replaced", extra={"count": len(new_users)})
        return self.all()

    def _persist(self) -> None:
        self._store.set(self._key, json.dumps([u.to_record() for u in self._users]))
