import logging
import os

from portal.infrastructure.store.base import MemoryStore, PersistedStore

logger = logging.getLogger("store")

STORE_BACKEND = os.environ.get("PORTAL_STORE_BACKEND", "memory").lower()


def build_store(backend: str = STORE_BACKEND) -> PersistedStore:
    logger.info("store_backend_selected", extra={"backend": backend})
    if backend == "memory":
        return MemoryStore()
    if backend == "redis":
        from portal.infrastructure.store.redis_store import RedisStore

        return RedisStore()
    if backend == "postgres":
        from portal.infrastructure.db import connection as db
        from portal.infrastructure.store.postgres_store import PostgresStore

        db.init_pool()
        store = PostgresStore()
        store.ensure_table()
        return store
    raise ValueError(f"Unknown PORTAL_STORE_BACKEND: {backend}")
