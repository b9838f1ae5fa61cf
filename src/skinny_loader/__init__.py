"""
Skinny Loader - Schema loader for DBIx::Skinny

Introspects SQLite, MySQL and PostgreSQL databases and either loads the
schema at runtime or publishes it as a static schema class.

Features:
- Table, column and primary key discovery through one driver contract
- Runtime loading into an in-memory Schema
- Static schema generation with before/after/table templates
- YAML configuration and a command-line interface
"""

__version__ = "0.12.0"

from skinny_loader.exceptions import (
    CompositePrimaryKeyError,
    ConfigError,
    ConnectionFailedError,
    DriverLoadError,
    DSNParseError,
    SchemaLoaderError,
    TemplateError,
    UnsupportedDriverError,
)
from skinny_loader.models import ConnectInfo, DriverKind, Schema, TableSchema
from skinny_loader.loader import (
    Loader,
    load_schema,
    make_schema_at,
    parse_dsn,
    resolve_driver,
)
from skinny_loader.config import LoaderConfig, attribute_provider, connect_info_from_env

__all__ = [
    # Models
    "ConnectInfo",
    "DriverKind",
    "Schema",
    "TableSchema",
    # Loader
    "Loader",
    "load_schema",
    "make_schema_at",
    "parse_dsn",
    "resolve_driver",
    # Config
    "LoaderConfig",
    "attribute_provider",
    "connect_info_from_env",
    # Errors
    "CompositePrimaryKeyError",
    "ConfigError",
    "ConnectionFailedError",
    "DriverLoadError",
    "DSNParseError",
    "SchemaLoaderError",
    "TemplateError",
    "UnsupportedDriverError",
]
