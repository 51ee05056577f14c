from typing import Optional

from psycopg_pool import ConnectionPool

from portal.infrastructure.db import connection as db


TABLE_CREATE = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
);
"""


class PostgresStore:
    def __init__(self, pool: Optional[ConnectionPool] = None) -> None:
        self._pool = pool

    def _get_pool(self) -> ConnectionPool:
        return self._pool or db.get_pool()

    def ensure_table(self) -> None:
        with self._get_pool().connection() as conn, conn.cursor() as cur:
            cur.execute(TABLE_CREATE)
            conn.commit()

    def get(self, key: str) -> Optional[str]:
        with self._get_pool().connection() as conn, conn.cursor() as cur:
            cur.execute(
                "SELECT value FROM kv_store WHERE key = %(key)s",
                {"key": key},
            )
            row = cur.fetchone()
        if not row:
            return None
        getter = row.get if hasattr(row, "get") else lambda k: row[0]
        return getter("value")

    def set(self, key: str, value: str) -> None:
        with self._get_pool().connection() as conn, conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO kv_store (key, value)
                VALUES (%(key)s, %(value)s)
                ON CONFLICT (key) DO UPDATE
                SET value = EXCLUDED.value, updated_at = now()
                """,
                {"key": key, "value": value},
            )
            conn.commit()
