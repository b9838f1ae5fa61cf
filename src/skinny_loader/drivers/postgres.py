"""
PostgreSQL driver using psycopg2.
"""

from __future__ import annotations

import logging
from types import ModuleType
from typing import Any, Dict, List

from skinny_loader.drivers.base import Driver
from skinny_loader.models import DriverKind

logger = logging.getLogger(__name__)


class PostgresDriver(Driver):
    """
    Driver for PostgreSQL databases.

    Only tables in the connection's current schema (normally ``public``)
    are listed. DSN remainder: ``dbname=app;host=localhost;port=5432``.
    """

    kind = DriverKind.PG
    module_name = "psycopg2"

    # DSN keys passed straight through to libpq
    PASSTHROUGH_KEYS = ("host", "port", "sslmode", "options")

    @classmethod
    def _open(
        cls,
        module: ModuleType,
        params: Dict[str, str],
        username: str,
        password: str,
    ) -> Any:
        kwargs: Dict[str, Any] = {}
        database = params.get("dbname") or params.get("database") or params.get("db")
        if database:
            kwargs["dbname"] = database
        for key in cls.PASSTHROUGH_KEYS:
            if params.get(key):
                kwargs[key] = params[key]
        if username:
            kwargs["user"] = username
        if password:
            kwargs["password"] = password

        logger.debug(f"Connecting to {kwargs.get('host', 'localhost')} as {username or '(default user)'}")
        return module.connect(**kwargs)

    def _fetch_tables(self) -> List[str]:
        rows = self._query("""
            SELECT table_name
            FROM information_schema.tables
            WHERE table_schema = current_schema()
                AND table_type = 'BASE TABLE'
            ORDER BY table_name
        """)
        return [row[0] for row in rows]

    def _fetch_primary_key(self, table: str) -> List[str]:
        rows = self._query("""
            SELECT kcu.column_name
            FROM information_schema.table_constraints tc
            JOIN information_schema.key_column_usage kcu
                ON tc.constraint_schema = kcu.constraint_schema
                AND tc.constraint_name = kcu.constraint_name
                AND tc.table_name = kcu.table_name
            WHERE tc.constraint_type = 'PRIMARY KEY'
                AND tc.table_schema = current_schema()
                AND tc.table_name = %s
            ORDER BY kcu.ordinal_position
        """, (table,))
        return [row[0] for row in rows]
