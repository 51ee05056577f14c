import logging
from typing import Callable, Optional

from portal.infrastructure.store.base import THEME_KEY, PersistedStore

logger = logging.getLogger("preferences")

DARK = "dark"
LIGHT = "light"


class PreferenceStore:
    """
    Dark/light theme flag. Missing values read as dark; any stored value other
    than "dark" reads as light. `apply` is the presentation hook run after each toggle.
    """

    def __init__(
        self,
        store: PersistedStore,
        apply: Optional[Callable[[bool], None]] = None,
        key: str = THEME_KEY,
    ) -> None:
        self._store = store
        self._apply = apply
        self._key = key
        self._dark: Optional[bool] = None

    def read(self) -> bool:
        if self._dark is None:
            saved = self._store.get(self._key)
            self._dark = True if saved is None else saved == DARK
        return self._dark

    def toggle(self) -> bool:
        self._dark = not self.read()
        self._store.set(self._key, DARK if self._dark else LIGHT)
        logger.info("theme_toggled", extra={"dark": self._dark})
        if self._apply is not None:
            self._apply(self._dark)
        return self._dark
