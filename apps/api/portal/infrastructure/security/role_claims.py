import logging
import os
from time import monotonic
from typing import Dict

import redis

logger = logging.getLogger("role_claims")

REDIS_URL = os.environ.get("ROLE_CLAIM_REDIS_URL") or os.environ.get("REDIS_URL") or "redis://redis:6379/0"
ROLE_CLAIM_TTL_SECONDS = int(os.environ.get("ROLE_CLAIM_TTL_SECONDS", "30"))
_client: redis.Redis | None = None
_fallback_claims: Dict[str, float] = {}


class RoleClaimBusy(Exception):
    pass


def _get_client() -> redis.Redis:
    global _client
    if _client is None:
        _client = redis.Redis.from_url(
            REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=0.5,
            socket_timeout=0.5,
        )
    return _client


def claim(identity_id: str, ttl_seconds: int = ROLE_CLAIM_TTL_SECONDS) -> None:
    """
    Mark a role assignment as in flight for identity_id using Redis SET NX EX.
    Falls back to an in-process table if Redis is unavailable.
    The TTL frees the claim if the holder dies without releasing it.
    """
    key = f"role_claim:{identity_id}"
    try:
        acquired = _get_client().set(key, "1", nx=True, ex=ttl_seconds)
        if not acquired:
            raise RoleClaimBusy
        return
    except RoleClaimBusy:
        raise
    except Exception as exc:
        logger.warning("Role claim Redis fallback engaged: %s", exc.__class__.__name__)

    now = monotonic()
    expires_at = _fallback_claims.get(key)
    if expires_at is not None and expires_at > now:
        raise RoleClaimBusy
    _fallback_claims[key] = now + ttl_seconds


def release(identity_id: str) -> None:
    key = f"role_claim:{identity_id}"
    _fallback_claims.pop(key, None)
    try:
        _get_client().delete(key)
    except Exception as exc:
        logger.warning("Role claim release failed: %s", exc.__class__.__name__)
