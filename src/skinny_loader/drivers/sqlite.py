"""
SQLite driver using the standard sqlite3 module.
"""

from __future__ import annotations

import logging
from types import ModuleType
from typing import Any, Dict, List

from skinny_loader.drivers.base import Driver
from skinny_loader.models import DriverKind

logger = logging.getLogger(__name__)


class SQLiteDriver(Driver):
    """
    Driver for SQLite database files.

    DSN remainder is either a bare path (``SQLite:test.db``) or
    ``dbname=test.db``.
    """

    kind = DriverKind.SQLITE
    module_name = "sqlite3"

    @classmethod
    def parse_params(cls, rest: str) -> Dict[str, str]:
        if "=" not in rest:
            return {"database": rest}
        params = super().parse_params(rest)
        if not {"dbname", "database", "db"} & params.keys():
            # a path that merely contains '='
            return {"database": rest}
        database = params.pop("dbname", None) or params.pop("database", None) or params.pop("db", "")
        params["database"] = database
        return params

    @classmethod
    def _open(
        cls,
        module: ModuleType,
        params: Dict[str, str],
        username: str,
        password: str,
    ) -> Any:
        logger.debug(f"Opening SQLite database {params.get('database') or '(temporary)'}")
        # sqlite has no authentication; credentials are ignored
        return module.connect(params.get("database", ""))

    def _fetch_tables(self) -> List[str]:
        rows = self._query("""
            SELECT name
            FROM sqlite_master
            WHERE type = 'table'
                AND name NOT LIKE 'sqlite\\_%' ESCAPE '\\'
            ORDER BY name
        """)
        return [row[0] for row in rows]

    def _fetch_primary_key(self, table: str) -> List[str]:
        # table_info rows: cid, name, type, notnull, dflt_value, pk
        rows = self._query(f"PRAGMA table_info({self.quote_identifier(table)})")
        pk_rows = sorted((row for row in rows if row[5]), key=lambda row: row[5])
        return [row[1] for row in pk_rows]
