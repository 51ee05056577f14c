from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

from portal.core.domain.user import parse_role


class ProviderError(Exception):
    """Remote identity provider rejected or failed a request."""


@dataclass
class Identity:
    id: str
    display_name: str
    email: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def role(self) -> Optional[str]:
        return parse_role(self.metadata.get("role"))


class IdentityProvider(Protocol):
    loaded: bool
    signed_in: bool
    identity: Optional[Identity]

    async def wait_loaded(self) -> None: ...

    async def set_metadata(self, patch: Dict[str, Any]) -> Identity: ...

    async def sign_out(self) -> None: ...
