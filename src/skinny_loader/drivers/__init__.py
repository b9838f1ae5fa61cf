"""
Engine-specific drivers for schema introspection.

Each driver implements the same contract (tables, table_columns, table_pk)
over one DB-API connection; engine differences stay inside the catalog
queries.
"""

from __future__ import annotations

from typing import Dict, List, Type, Union

from skinny_loader.drivers.base import Driver
from skinny_loader.drivers.mysql import MySQLDriver
from skinny_loader.drivers.postgres import PostgresDriver
from skinny_loader.drivers.sqlite import SQLiteDriver
from skinny_loader.models import DriverKind

# Registry of supported engines
DRIVERS: Dict[DriverKind, Type[Driver]] = {
    DriverKind.SQLITE: SQLiteDriver,
    DriverKind.MYSQL: MySQLDriver,
    DriverKind.PG: PostgresDriver,
}


def get_driver_class(kind: Union[DriverKind, str]) -> Type[Driver]:
    """Return the driver class for an engine kind."""
    return DRIVERS[DriverKind(kind)]


def supported_drivers() -> List[str]:
    """Return the DSN scheme tokens that have a driver."""
    return [kind.value for kind in DRIVERS]


__all__ = [
    "DRIVERS",
    "Driver",
    "MySQLDriver",
    "PostgresDriver",
    "SQLiteDriver",
    "get_driver_class",
    "supported_drivers",
]
