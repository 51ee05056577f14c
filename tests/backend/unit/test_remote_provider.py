import asyncio
import importlib

import pytest
import requests

from portal.core.domain.identity import ProviderError

USER_PAYLOAD = {
    "id": "user_123",
    "first_name": "Jane",
    "last_name": "Doe",
    "primary_email_address_id": "em_2",
    "email_addresses": [
        {"id": "em_1", "email_address": "old@example.com"},
        {"id": "em_2", "email_address": "jane@example.com"},
    ],
    "unsafe_metadata": {},
}


class FakeResponse:
    def __init__(self, payload=None, status_code=200):
        self._payload = payload
        self.status_code = status_code
        self.content = b"{}" if payload is not None else b""

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self._payload


class FakeHttp:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, headers=None, json=None, timeout=None):
        self.calls.append({"method": method, "url": url, "json": json, "headers": headers})
        return self.responses.pop(0)


@pytest.fixture
def rp(monkeypatch):
    module = importlib.import_module("portal.infrastructure.identity.remote_provider")
    monkeypatch.setattr(
        module,
        "decode_session_token",
        lambda token: {"sub": "user_123", "sid": "sess_9"} if token == "good" else None,
    )
    return module


def test_identity_from_payload_prefers_primary_email(rp):
    identity = rp.identity_from_payload(USER_PAYLOAD)
    assert identity.id == "user_123"
    assert identity.display_name == "Jane Doe"
    assert identity.email == "jane@example.com"
    assert identity.role is None


def test_load_with_valid_token_fetches_user(rp):
    http = FakeHttp([FakeResponse(dict(USER_PAYLOAD, unsafe_metadata={"role": "DOCTOR"}))])
    provider = rp.RemoteIdentityProvider("good", session=http, base_url="https://idp.test/v1", api_key="sk")

    asyncio.run(provider.wait_loaded())

    assert provider.loaded is True
    assert provider.signed_in is True
    assert provider.identity.role == "DOCTOR"
    assert http.calls[0]["url"] == "https://idp.test/v1/users/user_123"
    assert http.calls[0]["headers"]["Authorization"] == "Bearer sk"


def test_invalid_token_loads_signed_out(rp):
    http = FakeHttp([])
    provider = rp.RemoteIdentityProvider("bad", session=http)

    asyncio.run(provider.wait_loaded())

    assert provider.loaded is True
    assert provider.signed_in is False
    assert provider.identity is None
    assert http.calls == []


def test_user_lookup_failure_loads_signed_out(rp):
    http = FakeHttp([FakeResponse({"errors": []}, status_code=404)])
    provider = rp.RemoteIdentityProvider("good", session=http)

    asyncio.run(provider.wait_loaded())

    assert provider.loaded is True
    assert provider.signed_in is False


def test_set_metadata_patches_unsafe_metadata(rp):
    updated = dict(USER_PAYLOAD, unsafe_metadata={"role": "ADMIN"})
    http = FakeHttp([FakeResponse(USER_PAYLOAD), FakeResponse(updated)])
    provider = rp.RemoteIdentityProvider("good", session=http, base_url="https://idp.test/v1")
    asyncio.run(provider.wait_loaded())

    identity = asyncio.run(provider.set_metadata({"role": "ADMIN"}))

    assert identity.role == "ADMIN"
    call = http.calls[1]
    assert call["method"] == "PATCH"
    assert call["url"].endswith("/users/user_123/metadata")
    assert call["json"] == {"unsafe_metadata": {"role": "ADMIN"}}


def test_set_metadata_failure_raises_provider_error(rp):
    http = FakeHttp([FakeResponse(USER_PAYLOAD), FakeResponse({}, status_code=422)])
    provider = rp.RemoteIdentityProvider("good", session=http)
    asyncio.run(provider.wait_loaded())

    with pytest.raises(ProviderError):
        asyncio.run(provider.set_metadata({"role": "ADMIN"}))
    assert provider.identity.role is None


def test_sign_out_revokes_session(rp):
    http = FakeHttp([FakeResponse(USER_PAYLOAD), FakeResponse(None)])
    provider = rp.RemoteIdentityProvider("good", session=http)
    asyncio.run(provider.wait_loaded())

    asyncio.run(provider.sign_out())

    assert http.calls[1]["method"] == "POST"
    assert http.calls[1]["url"].endswith("/sessions/sess_9/revoke")
    assert provider.signed_in is False
    assert provider.identity is None


def test_decode_session_token_without_key_returns_none(monkeypatch):
    module = importlib.import_module("portal.infrastructure.identity.remote_provider")
    monkeypatch.setattr(module, "IDENTITY_JWT_PUBLIC_KEY", None)
    assert module.decode_session_token("anything") is None
