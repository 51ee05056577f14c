import sys
from pathlib import Path

import pytest

# Ensure apps/api is on path for imports inside the API package (e.g., `portal.application`).
ROOT = Path(__file__).resolve().parents[1]
API_PATH = ROOT / "apps" / "api"
if str(API_PATH) not in sys.path:
    sys.path.insert(0, str(API_PATH))

from portal.core.domain.identity import Identity, ProviderError  # noqa: E402


class FakeIdentityProvider:
    """In-memory identity provider; records every remote call."""

    def __init__(self, identity=None, loaded=True, fail_set=False, fail_sign_out=False):
        self.loaded = loaded
        self.signed_in = identity is not None
        self.identity = identity
        self.fail_set = fail_set
        self.fail_sign_out = fail_sign_out
        self.set_calls = []
        self.sign_out_calls = 0
        self.wait_calls = 0

    async def wait_loaded(self):
        self.wait_calls += 1
        self.loaded = True

    async def set_metadata(self, patch):
        self.set_calls.append(dict(patch))
        if self.fail_set:
            raise ProviderError("metadata write rejected")
        self.identity = Identity(
            id=self.identity.id,
            display_name=self.identity.display_name,
            email=self.identity.email,
            metadata={**self.identity.metadata, **patch},
        )
        return self.identity

    async def sign_out(self):
        self.sign_out_calls += 1
        if self.fail_sign_out:
            raise ProviderError("sign-out failed")
        self.signed_in = False
        self.identity = None


def make_identity(user_id="u1", name="Jane Doe", email="jane@example.com", role=None):
    metadata = {"role": role} if role else {}
    return Identity(id=user_id, display_name=name, email=email, metadata=metadata)


@pytest.fixture
def provider_factory():
    def build(**kwargs):
        identity = kwargs.pop("identity", None)
        return FakeIdentityProvider(identity=identity, **kwargs)

    return build


@pytest.fixture
def identity_factory():
    return make_identity
