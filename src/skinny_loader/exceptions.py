"""
Exceptions raised by skinny_loader.

Every failure aborts the whole load or generation run; nothing here is
recovered locally.
"""

from __future__ import annotations

from typing import List, Optional


class SchemaLoaderError(Exception):
    """Base class for all loader failures."""


class DSNParseError(SchemaLoaderError):
    """The data-source string has no scheme token."""

    def __init__(self, dsn: str):
        super().__init__(f"Could not parse DSN: {dsn!r}")
        self.dsn = dsn


class UnsupportedDriverError(SchemaLoaderError):
    """The DSN names an engine that has no driver."""

    def __init__(self, scheme: str):
        super().__init__(f"{scheme} is not supported by skinny_loader yet")
        self.scheme = scheme


class DriverLoadError(SchemaLoaderError):
    """The engine's DB-API module could not be imported."""


class ConnectionFailedError(SchemaLoaderError):
    """The engine rejected the connection attempt."""


class CompositePrimaryKeyError(SchemaLoaderError):
    """A table's primary key spans more than one column."""

    def __init__(self, table: str, columns: List[str]):
        super().__init__(
            f"Composite primary keys are not supported: "
            f"{table} ({', '.join(columns)})"
        )
        self.table = table
        self.columns = columns


class TemplateError(SchemaLoaderError):
    """A caller-supplied template uses an unknown placeholder."""

    def __init__(self, token: str, template_name: Optional[str] = None):
        where = f" in {template_name}" if template_name else ""
        super().__init__(f"Unknown placeholder {token!r}{where}")
        self.token = token


class ConfigError(SchemaLoaderError):
    """Configuration file is missing or malformed."""
