"""
Core data models for the skinny_loader package.

Defines the connection descriptor, the supported engine kinds, and the
schema structure populated by the loader.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Union


class DriverKind(str, Enum):
    """Supported database engines, keyed by their DSN scheme token."""
    SQLITE = "SQLite"
    MYSQL = "mysql"
    PG = "Pg"

    @classmethod
    def schemes(cls) -> List[str]:
        """Return the accepted DSN scheme tokens."""
        return [kind.value for kind in cls]


@dataclass
class ConnectInfo:
    """Data-source string plus credentials used to open one connection."""
    dsn: str
    username: str = ""
    password: str = ""

    @classmethod
    def coerce(
        cls,
        value: Union[ConnectInfo, Mapping[str, Any], Sequence[Any]],
    ) -> ConnectInfo:
        """
        Build a ConnectInfo from the accepted descriptor shapes.

        Args:
            value: ConnectInfo, mapping with dsn/username/password keys,
                or a (dsn, user, pass) sequence

        Returns:
            ConnectInfo instance
        """
        if isinstance(value, ConnectInfo):
            return value
        if isinstance(value, Mapping):
            return cls(
                dsn=value.get("dsn") or "",
                username=value.get("username") or "",
                password=value.get("password") or "",
            )
        if isinstance(value, (list, tuple)):
            items = list(value) + [""] * (3 - len(value))
            dsn, username, password = items[:3]
            return cls(dsn=dsn or "", username=username or "", password=password or "")
        raise TypeError(f"Unsupported connect info: {value!r}")


@dataclass
class TableSchema:
    """Columns and primary key of a single table."""
    name: str
    columns: List[str] = field(default_factory=list)
    pk: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        data: Dict[str, Any] = {"columns": list(self.columns)}
        if self.pk:
            data["pk"] = self.pk
        return data

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> TableSchema:
        """Create from dictionary."""
        return cls(
            name=name,
            columns=list(data.get("columns", [])),
            pk=data.get("pk"),
        )


@dataclass
class Schema:
    """
    In-memory schema structure: table name -> TableSchema.

    Tables keep their installation order. Installing the same table twice
    updates the given fields and keeps the others, so hand-written settings
    survive a later load.
    """
    tables: Dict[str, TableSchema] = field(default_factory=dict)

    def install_table(
        self,
        name: str,
        pk: Optional[str] = None,
        columns: Optional[List[str]] = None,
    ) -> TableSchema:
        """Add or update a table entry and return it."""
        table = self.tables.get(name)
        if table is None:
            table = TableSchema(name=name)
            self.tables[name] = table
        if pk is not None:
            table.pk = pk
        if columns is not None:
            table.columns = list(columns)
        return table

    def get_table(self, name: str) -> Optional[TableSchema]:
        """Get table by name."""
        return self.tables.get(name)

    @property
    def table_names(self) -> List[str]:
        """Return table names in installation order."""
        return list(self.tables.keys())

    def __contains__(self, name: object) -> bool:
        return name in self.tables

    def __len__(self) -> int:
        return len(self.tables)

    def __iter__(self) -> Iterator[TableSchema]:
        return iter(self.tables.values())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {name: table.to_dict() for name, table in self.tables.items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Schema:
        """Create from dictionary."""
        schema = cls()
        for name, table_data in data.items():
            schema.tables[name] = TableSchema.from_dict(name, table_data)
        return schema
