from __future__ import annotations

from sqlalchemy import text

from app.application.ports.key_value_store_port import KeyValueStorePort


class SqlKeyValueStore(KeyValueStorePort):
    """Retained checkout values in a SQL table, scoped per shopper namespace."""

    def __init__(self, engine, *, namespace: str):
        self._engine = engine
        self._namespace = namespace

    def ensure_schema(self) -> None:
        sql = """
            CREATE TABLE IF NOT EXISTS checkout_session_values (
                namespace TEXT NOT NULL,
                key TEXT NOT NULL,
                value TEXT NOT NULL,
                PRIMARY KEY (namespace, key)
            )
        """
        with self._engine.begin() as conn:
            conn.execute(text(sql))

    def get(self, key: str) -> str | None:
        sql = """
            SELECT value
            FROM checkout_session_values
            WHERE namespace = :namespace
              AND key = :key
            LIMIT 1
        """
        with self._engine.connect() as conn:
            row = conn.execute(text(sql), {"namespace": self._namespace, "key": key}).mappings().first()
        if row is None:
            return None
        return str(row["value"])

    def set(self, key: str, value: str) -> None:
        sql = """
            INSERT INTO checkout_session_values (namespace, key, value)
            VALUES (:namespace, :key, :value)
            ON CONFLICT (namespace, key) DO UPDATE SET value = excluded.value
        """
        with self._engine.begin() as conn:
            conn.execute(text(sql), {"namespace": self._namespace, "key": key, "value": value})

    def remove(self, key: str) -> None:
        sql = """
            DELETE FROM checkout_session_values
            WHERE namespace = :namespace
              AND key = :key
        """
        with self._engine.begin() as conn:
            conn.execute(text(sql), {"namespace": self._namespace, "key": key})
