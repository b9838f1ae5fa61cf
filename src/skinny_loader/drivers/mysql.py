"""
MySQL driver using PyMySQL.

Reads tables and primary keys from information_schema for the current
database.
"""

from __future__ import annotations

import logging
from types import ModuleType
from typing import Any, Dict, List

from skinny_loader.drivers.base import Driver
from skinny_loader.exceptions import ConnectionFailedError
from skinny_loader.models import DriverKind

logger = logging.getLogger(__name__)


class MySQLDriver(Driver):
    """
    Driver for MySQL/MariaDB servers.

    DSN remainder: ``database=app;host=localhost;port=3306``. ``dbname`` and
    ``db`` are accepted for the database, ``mysql_socket`` for a unix socket.
    """

    kind = DriverKind.MYSQL
    module_name = "pymysql"

    @classmethod
    def _open(
        cls,
        module: ModuleType,
        params: Dict[str, str],
        username: str,
        password: str,
    ) -> Any:
        kwargs: Dict[str, Any] = {
            "host": params.get("host", "localhost"),
            "user": username or None,
            "password": password,
            "charset": "utf8mb4",
        }
        database = params.get("database") or params.get("dbname") or params.get("db")
        if database:
            kwargs["database"] = database
        if params.get("port"):
            try:
                kwargs["port"] = int(params["port"])
            except ValueError as e:
                raise ConnectionFailedError(f"Invalid MySQL port: {params['port']!r}") from e
        if params.get("mysql_socket"):
            kwargs["unix_socket"] = params["mysql_socket"]

        logger.debug(f"Connecting to {kwargs.get('host', 'localhost')} as {username or '(default user)'}")
        return module.connect(**kwargs)

    def _fetch_quoter(self) -> str:
        rows = self._query("SELECT @@SESSION.sql_mode")
        sql_mode = (rows[0][0] or "") if rows else ""
        return '"' if "ANSI_QUOTES" in sql_mode.upper() else "`"

    def _fetch_tables(self) -> List[str]:
        rows = self._query("""
            SELECT TABLE_NAME
            FROM information_schema.TABLES
            WHERE TABLE_SCHEMA = DATABASE()
                AND TABLE_TYPE = 'BASE TABLE'
            ORDER BY TABLE_NAME
        """)
        return [row[0] for row in rows]

    def _fetch_primary_key(self, table: str) -> List[str]:
        rows = self._query("""
            SELECT COLUMN_NAME
            FROM information_schema.KEY_COLUMN_USAGE
            WHERE TABLE_SCHEMA = DATABASE()
                AND TABLE_NAME = %s
                AND CONSTRAINT_NAME = 'PRIMARY'
            ORDER BY ORDINAL_POSITION
        """, (table,))
        return [row[0] for row in rows]
