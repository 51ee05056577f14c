import importlib

import pytest

fastapi = pytest.importorskip("fastapi")
TestClient = pytest.importorskip("fastapi.testclient").TestClient

from portal.application.preferences import PreferenceStore  # noqa: E402
from portal.application.user_directory import UserDirectory  # noqa: E402
from portal.core.domain.user import Role, User  # noqa: E402
from portal.infrastructure.store.base import MemoryStore  # noqa: E402


def _seed_users():
    return [
        User(id="p1", name="Patient One", email="p1@example.com", role=Role.PATIENT),
        User(id="d1", name="Doctor One", email="d1@example.com", role=Role.DOCTOR),
    ]


class ProviderHolder:
    """Lets a test swap the identity seen by the API between requests."""

    def __init__(self, provider):
        self.provider = provider


def _raise_down():
    raise ConnectionError("redis unavailable in tests")


@pytest.fixture
def app_modules(monkeypatch, provider_factory):
    """
    Load the app with an in-memory store and a fake identity provider so no
    Redis, Postgres, or identity backend is needed.
    """
    app_module = importlib.import_module("portal.main")
    deps = importlib.import_module("portal.interfaces.api.deps")
    role_claims = importlib.import_module("portal.infrastructure.security.role_claims")

    store = MemoryStore()
    directory = UserDirectory(store)
    directory.seed(_seed_users)
    preferences = PreferenceStore(store)

    monkeypatch.setattr(app_module.app.state, "directory", directory, raising=False)
    monkeypatch.setattr(app_module.app.state, "preferences", preferences, raising=False)
    monkeypatch.setattr(role_claims, "_get_client", _raise_down)
    monkeypatch.setattr(role_claims, "_fallback_claims", {})

    holder = ProviderHolder(provider_factory())
    app_module.app.dependency_overrides[deps.get_identity_provider] = lambda: holder.provider
    yield {
        "app": app_module.app,
        "store": store,
        "directory": directory,
        "holder": holder,
        "role_claims": role_claims,
    }
    app_module.app.dependency_overrides.clear()


@pytest.fixture
def client(app_modules):
    return TestClient(app_modules["app"])
