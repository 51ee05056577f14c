from typing import Optional

from portal.core.domain.identity import Identity, IdentityProvider, ProviderError


class AuthSession:
    """Thin adapter over an identity provider; role lives in identity metadata."""

    def __init__(self, provider: IdentityProvider) -> None:
        self._provider = provider

    @property
    def loaded(self) -> bool:
        return bool(self._provider.loaded)

    @property
    def signed_in(self) -> bool:
        return bool(self._provider.loaded and self._provider.signed_in)

    @property
    def identity(self) -> Optional[Identity]:
        if not self.signed_in:
            return None
        return self._provider.identity

    async def await_load(self) -> None:
        if self._provider.loaded:
            return
        await self._provider.wait_loaded()

    async def set_role(self, role: str) -> Identity:
        value = getattr(role, "value", role)
        try:
            return await self._provider.set_metadata({"role": value})
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError(f"Role update failed: {exc}") from exc

    async def sign_out(self) -> None:
        try:
            await self._provider.sign_out()
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError(f"Sign-out failed: {exc}") from exc
