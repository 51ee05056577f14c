import asyncio
import logging
import os
from typing import Any, Dict, Optional

import requests
from jose import JWTError, jwt

from portal.core.domain.identity import Identity, ProviderError

logger = logging.getLogger("identity")

IDENTITY_API_URL = os.environ.get("IDENTITY_API_URL", "https://api.clerk.com/v1").rstrip("/")
IDENTITY_API_KEY = os.environ.get("IDENTITY_API_KEY", "")
IDENTITY_JWT_PUBLIC_KEY = os.environ.get("IDENTITY_JWT_PUBLIC_KEY")
IDENTITY_JWT_ALGORITHM = os.environ.get("IDENTITY_JWT_ALGORITHM", "RS256")
IDENTITY_JWT_AUDIENCE = os.environ.get("IDENTITY_JWT_AUDIENCE")
IDENTITY_HTTP_TIMEOUT = float(os.environ.get("IDENTITY_HTTP_TIMEOUT", "10"))


def decode_session_token(token: str) -> Optional[dict]:
    """Return verified session claims, or None when the token can't be trusted."""
    if not token or not IDENTITY_JWT_PUBLIC_KEY:
        return None
    options = {"require": ["exp", "sub"], "verify_aud": bool(IDENTITY_JWT_AUDIENCE)}
    try:
        return jwt.decode(
            token,
            IDENTITY_JWT_PUBLIC_KEY,
            algorithms=[IDENTITY_JWT_ALGORITHM],
            audience=IDENTITY_JWT_AUDIENCE,
            options=options,
        )
    except JWTError:
        return None


def identity_from_payload(payload: Dict[str, Any]) -> Identity:
    first = payload.get("first_name") or ""
    last = payload.get("last_name") or ""
    full_name = " ".join(p for p in (first, last) if p).strip()

    email = ""
    primary_id = payload.get("primary_email_address_id")
    addresses = payload.get("email_addresses") or []
    for entry in addresses:
        if entry.get("id") == primary_id:
            email = entry.get("email_address") or ""
            break
    if not email and addresses:
        email = addresses[0].get("email_address") or ""

    return Identity(
        id=payload["id"],
        display_name=full_name or first,
        email=email,
        metadata=dict(payload.get("unsafe_metadata") or {}),
    )


class RemoteIdentityProvider:
    """
    Identity provider backed by a hosted user-management backend API.
    The session token is verified locally; profile data and metadata writes go
    over HTTP. Blocking calls run in a worker thread so the event loop stays free.
    """

    def __init__(
        self,
        session_token: Optional[str],
        session: Optional[requests.Session] = None,
        base_url: str = IDENTITY_API_URL,
        api_key: str = IDENTITY_API_KEY,
    ) -> None:
        self._token = session_token
        self._http = session or requests.Session()
        self._base_url = base_url
        self._api_key = api_key
        self._claims: Optional[dict] = None
        self.loaded = False
        self.signed_in = False
        self.identity: Optional[Identity] = None

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, path: str, json_body: Optional[dict] = None) -> Any:
        url = f"{self._base_url}{path}"
        try:
            resp = self._http.request(
                method,
                url,
                headers=self._headers(),
                json=json_body,
                timeout=IDENTITY_HTTP_TIMEOUT,
            )
            resp.raise_for_status()
        except requests.RequestException as exc:
            logger.warning(
                "identity_request_failed",
                extra={"method": method, "path": path, "error": exc.__class__.__name__},
            )
            raise ProviderError(f"{method} {path} failed: {exc}") from exc
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise ProviderError(f"{method} {path} returned invalid JSON") from exc

    def _load_sync(self) -> None:
        claims = decode_session_token(self._token or "")
        if claims is None:
            self.signed_in = False
            self.identity = None
            return
        self._claims = claims
        payload = self._request("GET", f"/users/{claims['sub']}")
        self.identity = identity_from_payload(payload)
        self.signed_in = True

    async def wait_loaded(self) -> None:
        if self.loaded:
            return
        try:
            await asyncio.to_thread(self._load_sync)
        except ProviderError:
            # A user lookup failure leaves the caller signed out rather than stuck loading.
            self.signed_in = False
            self.identity = None
        self.loaded = True

    async def set_metadata(self, patch: Dict[str, Any]) -> Identity:
        if self.identity is None:
            raise ProviderError("No signed-in identity to update.")
        payload = await asyncio.to_thread(
            self._request,
            "PATCH",
            f"/users/{self.identity.id}/metadata",
            {"unsafe_metadata": patch},
        )
        self.identity = identity_from_payload(payload)
        return self.identity

    async def sign_out(self) -> None:
        session_id = (self._claims or {}).get("sid")
        if session_id:
            await asyncio.to_thread(self._request, "POST", f"/sessions/{session_id}/revoke")
        self.signed_in = False
        self.identity = None
