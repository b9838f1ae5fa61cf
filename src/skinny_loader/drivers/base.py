"""
Base driver - common contract for engine-specific schema introspection.

A driver owns one DB-API connection and answers three questions about it:
which tables exist, which columns a table has, and which single column is
its primary key.
"""

from __future__ import annotations

import importlib
import logging
from abc import ABC, abstractmethod
from types import ModuleType
from typing import Any, Dict, List, Optional, Sequence

from skinny_loader.exceptions import (
    CompositePrimaryKeyError,
    ConnectionFailedError,
    DriverLoadError,
)
from skinny_loader.models import DriverKind

logger = logging.getLogger(__name__)


class Driver(ABC):
    """
    Abstract base class for database drivers.

    Subclasses set ``kind`` and ``module_name`` and implement the catalog
    queries. Quoting metadata and the table list are fetched lazily from the
    connection on first use and cached for the driver's lifetime.
    """

    kind: DriverKind
    module_name: str

    def __init__(self, connection: Any):
        """
        Initialize the driver around an open connection.

        Args:
            connection: DB-API connection object
        """
        self.connection = connection
        self._quoter: Optional[str] = None
        self._namesep: Optional[str] = None
        self._tables: Optional[List[str]] = None

    @classmethod
    def load_module(cls) -> ModuleType:
        """Import the engine's DB-API module."""
        try:
            return importlib.import_module(cls.module_name)
        except ImportError as e:
            raise DriverLoadError(
                f"Could not load {cls.module_name} for {cls.kind.value}: {e}"
            ) from e

    @classmethod
    def connect(
        cls,
        params: Dict[str, str],
        username: str = "",
        password: str = "",
    ) -> Driver:
        """
        Open a connection and wrap it in a driver instance.

        Args:
            params: Connection parameters parsed from the DSN
            username: Database user
            password: Database password

        Returns:
            Driver owning the new connection
        """
        module = cls.load_module()
        try:
            connection = cls._open(module, params, username, password)
        except module.Error as e:
            raise ConnectionFailedError(
                f"Could not connect to {cls.kind.value} database: {e}"
            ) from e

        logger.info(f"Connected to {cls.kind.value} database")
        return cls(connection)

    @classmethod
    def parse_params(cls, rest: str) -> Dict[str, str]:
        """Parse the DSN remainder (``key=value;key=value``) into parameters."""
        params: Dict[str, str] = {}
        for item in rest.split(";"):
            item = item.strip()
            if not item:
                continue
            key, _, value = item.partition("=")
            params[key.strip().lower()] = value.strip()
        return params

    @classmethod
    @abstractmethod
    def _open(
        cls,
        module: ModuleType,
        params: Dict[str, str],
        username: str,
        password: str,
    ) -> Any:
        """Call the DB-API ``connect`` with engine-specific arguments."""

    def close(self) -> None:
        """Close the database connection."""
        if self.connection is not None:
            self.connection.close()
            self.connection = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @property
    def quoter(self) -> str:
        """Identifier quote character reported by the connection."""
        if self._quoter is None:
            self._quoter = self._fetch_quoter()
        return self._quoter

    @property
    def namesep(self) -> str:
        """Separator between qualified name parts."""
        if self._namesep is None:
            self._namesep = self._fetch_namesep()
        return self._namesep

    @property
    def tables(self) -> List[str]:
        """All user tables visible to the connection, sorted by name."""
        if self._tables is None:
            self._tables = self._fetch_tables()
            logger.debug(f"Found {len(self._tables)} tables: {self._tables}")
        return self._tables

    def quote_identifier(self, name: str) -> str:
        """Quote a table name for use in SQL text."""
        q = self.quoter
        return f"{q}{name.replace(q, q * 2)}{q}"

    def table_columns(self, table: str) -> List[str]:
        """
        Get the column names of a table, lower-cased, in engine order.

        Uses a zero-row projection so the table contents never matter.

        Args:
            table: Table name

        Returns:
            List of column names
        """
        sql = f"SELECT * FROM {self.quote_identifier(table)} WHERE 1 = 0"
        cursor = self.connection.cursor()
        try:
            cursor.execute(sql)
            columns = [desc[0].lower() for desc in cursor.description]
        finally:
            cursor.close()

        logger.debug(f"{table}: columns {columns}")
        return columns

    def table_pk(self, table: str) -> Optional[str]:
        """
        Get the primary key column of a table.

        Args:
            table: Table name

        Returns:
            The primary key column name, or None if the table has none

        Raises:
            CompositePrimaryKeyError: if the key spans several columns
        """
        keys = self._fetch_primary_key(table)
        if len(keys) > 1:
            raise CompositePrimaryKeyError(table, keys)

        logger.debug(f"{table}: primary key {keys}")
        return keys[0] if keys else None

    def _query(self, sql: str, params: Sequence[Any] = ()) -> List[tuple]:
        """Run a catalog query and return all rows."""
        cursor = self.connection.cursor()
        try:
            if params:
                cursor.execute(sql, params)
            else:
                cursor.execute(sql)
            return list(cursor.fetchall())
        finally:
            cursor.close()

    def _fetch_quoter(self) -> str:
        return '"'

    def _fetch_namesep(self) -> str:
        return "."

    @abstractmethod
    def _fetch_tables(self) -> List[str]:
        """Query the catalog for user table names."""

    @abstractmethod
    def _fetch_primary_key(self, table: str) -> List[str]:
        """Query the catalog for the primary key columns of a table, in key order."""
