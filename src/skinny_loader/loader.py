"""
Schema loader: picks a driver from the DSN, walks every table, and either
fills an in-memory Schema or renders a static DBIx::Skinny schema class.
"""

from __future__ import annotations

import logging
import warnings
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from skinny_loader.drivers import Driver, get_driver_class
from skinny_loader.exceptions import (
    CompositePrimaryKeyError,
    DSNParseError,
    SchemaLoaderError,
    UnsupportedDriverError,
)
from skinny_loader.models import ConnectInfo, DriverKind, Schema
from skinny_loader.templates import check_template, insert_block, render_table

logger = logging.getLogger(__name__)


SCHEMA_MODULE = "DBIx::Skinny::Schema"
SCHEMA_TRAILER = "1;"

OPTION_KEYS = (
    "before_template",
    "template",
    "after_template",
    "table_template",
    "composite_pk",
)

# How make_schema_at treats a table whose primary key spans several columns
COMPOSITE_PK_MODES = ("error", "empty")

ConnectInfoProvider = Callable[[], Any]


def parse_dsn(dsn: str) -> Tuple[DriverKind, Dict[str, str]]:
    """
    Split a DSN into its engine kind and connection parameters.

    The scheme is the token before the first colon; a leading ``dbi:``
    prefix is skipped so Perl-style DSNs work unchanged.

    Args:
        dsn: Data-source string, e.g. ``SQLite:test.db``

    Returns:
        (DriverKind, connection parameters)

    Raises:
        DSNParseError: if there is no scheme
        UnsupportedDriverError: if the scheme names an unknown engine
    """
    body = dsn or ""
    if body[:4].lower() == "dbi:":
        body = body[4:]

    scheme, sep, rest = body.partition(":")
    if not sep or not scheme:
        raise DSNParseError(dsn)

    try:
        kind = DriverKind(scheme)
    except ValueError:
        raise UnsupportedDriverError(scheme) from None

    return kind, get_driver_class(kind).parse_params(rest)


def resolve_driver(dsn: str) -> DriverKind:
    """Return the engine kind named by a DSN."""
    return parse_dsn(dsn)[0]


class Loader:
    """
    Drives one introspection run over a single connection.

    The connection is opened by ``load_schema``/``make_schema_at`` and
    closed again before they return.
    """

    def __init__(self):
        self.driver: Optional[Driver] = None

    def connect(self, dsn: str, username: str = "", password: str = "") -> Driver:
        """
        Resolve the driver for ``dsn`` and open a connection.

        Returns:
            The connected driver
        """
        kind, params = parse_dsn(dsn)
        self.disconnect()
        logger.debug(f"Using {kind.value} driver")
        self.driver = get_driver_class(kind).connect(params, username, password)
        return self.driver

    def disconnect(self) -> None:
        """Close the current driver's connection, if any."""
        if self.driver is not None:
            self.driver.close()
            self.driver = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()

    def load_schema(
        self,
        schema: Optional[Schema] = None,
        connect_info: Optional[Any] = None,
        connect_info_provider: Optional[ConnectInfoProvider] = None,
    ) -> Schema:
        """
        Populate a schema with every table's columns and primary key.

        Args:
            schema: Schema to update in place (a new one if not provided)
            connect_info: (dsn, user, pass) sequence, mapping or ConnectInfo
            connect_info_provider: Called for connect info when
                ``connect_info`` is not given

        Returns:
            The populated schema

        Raises:
            CompositePrimaryKeyError: if any table has a composite key
        """
        if connect_info is None:
            if connect_info_provider is None:
                raise SchemaLoaderError("No connect info given and no provider configured")
            connect_info = connect_info_provider()
        info = ConnectInfo.coerce(connect_info)

        if schema is None:
            schema = Schema()

        self.connect(info.dsn, info.username, info.password)
        try:
            for table in self.driver.tables:
                schema.install_table(
                    table,
                    pk=self.driver.table_pk(table),
                    columns=self.driver.table_columns(table),
                )
        finally:
            self.disconnect()

        logger.info(f"Loaded {len(schema)} tables")
        return schema

    def make_schema_at(
        self,
        schema_class: str,
        options: Optional[Mapping[str, Any]] = None,
        connect_info: Optional[Any] = None,
    ) -> str:
        """
        Render the source of a static schema class.

        Args:
            schema_class: Package name of the generated class
            options: before_template, template (deprecated),
                after_template, table_template, composite_pk
            connect_info: (dsn, user, pass) sequence, mapping or ConnectInfo

        Returns:
            Schema source text
        """
        options = dict(options or {})
        unknown = sorted(set(options) - set(OPTION_KEYS))
        if unknown:
            raise SchemaLoaderError(f"Unknown options: {', '.join(unknown)}")

        composite_pk = options.get("composite_pk") or "error"
        if composite_pk not in COMPOSITE_PK_MODES:
            raise SchemaLoaderError(
                f"composite_pk must be one of {COMPOSITE_PK_MODES}, got {composite_pk!r}"
            )

        table_template = options.get("table_template")
        if table_template:
            check_template(table_template, "table_template")

        if options.get("template"):
            logger.warning("The 'template' option is deprecated, use 'before_template'")
            warnings.warn(
                "the 'template' option is deprecated, use 'before_template'",
                DeprecationWarning,
                stacklevel=2,
            )

        if connect_info is None:
            raise SchemaLoaderError("make_schema_at requires connect info")
        info = ConnectInfo.coerce(connect_info)

        self.connect(info.dsn, info.username, info.password)
        try:
            parts = [
                f"package {schema_class};\nuse {SCHEMA_MODULE};\n\n",
                insert_block(options.get("before_template")),
                insert_block(options.get("template")),
            ]
            for table in self.driver.tables:
                parts.append(render_table(
                    table,
                    self._table_pk(table, composite_pk),
                    self.driver.table_columns(table),
                    table_template,
                ))
            parts.append(insert_block(options.get("after_template")))
            parts.append(SCHEMA_TRAILER)
            table_count = len(self.driver.tables)
        finally:
            self.disconnect()

        logger.info(f"Generated {schema_class} with {table_count} tables")
        return "".join(parts)

    def _table_pk(self, table: str, composite_pk: str) -> Optional[str]:
        try:
            return self.driver.table_pk(table)
        except CompositePrimaryKeyError as e:
            if composite_pk != "empty":
                raise
            logger.warning(f"{e}; publishing empty pk for {table}")
            return None


def load_schema(
    connect_info: Optional[Any] = None,
    schema: Optional[Schema] = None,
    connect_info_provider: Optional[ConnectInfoProvider] = None,
) -> Schema:
    """Load a schema with a fresh Loader. See ``Loader.load_schema``."""
    return Loader().load_schema(
        schema=schema,
        connect_info=connect_info,
        connect_info_provider=connect_info_provider,
    )


def make_schema_at(
    schema_class: str,
    options: Optional[Mapping[str, Any]],
    connect_info: Any,
) -> str:
    """
    Return the source text of a static schema class.

    Example:
        print(make_schema_at(
            "Your::DB::Schema",
            {"before_template": "install_utf8_columns qw/title content/;"},
            ("SQLite:test.db", "", ""),
        ))
    """
    return Loader().make_schema_at(schema_class, options, connect_info)
