"""
Tests for the loader: DSN resolution, runtime loading and static
schema generation.
"""

import logging
import re
import sqlite3
import warnings
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from skinny_loader.config import attribute_provider
from skinny_loader.drivers import Driver, SQLiteDriver
from skinny_loader.exceptions import (
    CompositePrimaryKeyError,
    DSNParseError,
    SchemaLoaderError,
    TemplateError,
    UnsupportedDriverError,
)
from skinny_loader.loader import Loader, load_schema, make_schema_at, parse_dsn, resolve_driver
from skinny_loader.models import ConnectInfo, DriverKind, Schema


class TestResolveDriver:
    """Tests for DSN scheme resolution."""

    @pytest.mark.parametrize("dsn,kind", [
        ("SQLite:test.db", DriverKind.SQLITE),
        ("mysql:database=app;host=localhost", DriverKind.MYSQL),
        ("Pg:dbname=app", DriverKind.PG),
        ("dbi:SQLite:test.db", DriverKind.SQLITE),
        ("DBI:Pg:dbname=app", DriverKind.PG),
    ])
    def test_supported(self, dsn, kind):
        assert resolve_driver(dsn) == kind

    @pytest.mark.parametrize("dsn", ["sqlite:test.db", "Oracle:orcl", "MySQL:database=app"])
    def test_unsupported(self, dsn):
        with pytest.raises(UnsupportedDriverError):
            resolve_driver(dsn)

    @pytest.mark.parametrize("dsn", ["", "test.db", ":memory", "dbi:", "dbi:SQLite"])
    def test_missing_scheme(self, dsn):
        with pytest.raises(DSNParseError):
            resolve_driver(dsn)

    def test_params(self):
        kind, params = parse_dsn("mysql:database=app;host=db.local;port=3307")
        assert kind == DriverKind.MYSQL
        assert params == {"database": "app", "host": "db.local", "port": "3307"}

    def test_sqlite_memory(self):
        assert parse_dsn("SQLite::memory:") == (DriverKind.SQLITE, {"database": ":memory:"})

    def test_no_connection_attempt_on_bad_scheme(self):
        with patch.object(SQLiteDriver, "connect") as connect:
            with pytest.raises(UnsupportedDriverError):
                Loader().connect("Oracle:orcl")
            connect.assert_not_called()


class TestLoadSchema:
    """Tests for runtime schema loading."""

    def test_populates_schema(self, mock_dsn):
        schema = load_schema((mock_dsn, "", ""))

        assert schema.table_names == ["authors", "books", "genders", "prefectures"]
        assert schema.get_table("books").pk == "id"
        assert schema.get_table("books").columns == ["id", "author_id", "name"]
        assert schema.get_table("prefectures").pk == "name"
        assert schema.get_table("genders").pk is None
        assert schema.get_table("authors").columns == ["id", "gender_name", "pref_name", "name"]

    def test_mapping_connect_info(self, mock_dsn):
        schema = load_schema({"dsn": mock_dsn, "username": "", "password": ""})
        assert len(schema) == 4

    def test_updates_existing_schema(self, mock_dsn):
        schema = Schema()
        schema.install_table("genders", pk="name")

        result = Loader().load_schema(schema, connect_info=ConnectInfo(dsn=mock_dsn))

        assert result is schema
        # pk is only set when the database has one
        assert schema.get_table("genders").pk == "name"
        assert schema.get_table("genders").columns == ["name"]

    def test_path_containing_equals(self, tmp_path):
        path = tmp_path / "a=b" / "test.db"
        path.parent.mkdir()
        conn = sqlite3.connect(str(path))
        conn.execute("CREATE TABLE books (id INTEGER PRIMARY KEY, name TEXT)")
        conn.commit()
        conn.close()

        schema = load_schema((f"SQLite:{path}",))

        assert schema.table_names == ["books"]
        assert schema.get_table("books").pk == "id"

    def test_connect_info_provider(self, mock_dsn):
        db_class = SimpleNamespace(attribute={"dsn": mock_dsn, "username": "", "password": ""})
        schema = load_schema(connect_info_provider=attribute_provider(db_class))
        assert "books" in schema

    def test_explicit_connect_info_wins(self, mock_dsn):
        def provider():
            raise AssertionError("provider should not be called")

        schema = load_schema((mock_dsn,), connect_info_provider=provider)
        assert "books" in schema

    def test_no_connect_info(self):
        with pytest.raises(SchemaLoaderError):
            load_schema()

    def test_composite_pk_aborts(self, composite_dsn):
        with pytest.raises(CompositePrimaryKeyError):
            load_schema((composite_dsn, "", ""))

    def test_connection_closed(self, mock_dsn):
        loader = Loader()
        with patch.object(SQLiteDriver, "close", autospec=True, side_effect=Driver.close) as close:
            loader.load_schema(connect_info=(mock_dsn,))
        close.assert_called_once()
        assert loader.driver is None


EXPECTED_BOOKS_GENDERS = (
    "package Your::DB::Schema;\n"
    "use DBIx::Skinny::Schema;\n"
    "\n"
    "install_table books => schema {\n"
    "    pk 'id';\n"
    "    columns qw/id author_id name/;\n"
    "};\n"
    "\n"
    "install_table genders => schema {\n"
    "    pk '';\n"
    "    columns qw/name/;\n"
    "};\n"
    "\n"
    "1;"
)


class TestMakeSchemaAt:
    """Tests for static schema generation."""

    def test_default_output(self, books_genders_dsn):
        text = make_schema_at("Your::DB::Schema", {}, [books_genders_dsn, "", ""])
        assert text == EXPECTED_BOOKS_GENDERS

    def test_all_tables_in_driver_order(self, mock_dsn):
        text = make_schema_at("Mock::DB::Schema", None, (mock_dsn, "", ""))

        tables = re.findall(r"^install_table (\w+) =>", text, re.MULTILINE)
        assert tables == ["authors", "books", "genders", "prefectures"]
        assert text.startswith("package Mock::DB::Schema;\nuse DBIx::Skinny::Schema;\n\n")
        assert text.endswith("};\n\n1;")

    def test_columns_line_round_trip(self, mock_dsn):
        text = make_schema_at("Mock::DB::Schema", {}, (mock_dsn, "", ""))
        parsed = dict(zip(
            re.findall(r"^install_table (\w+) =>", text, re.MULTILINE),
            [line.split() for line in re.findall(r"columns qw/([^/]*)/;", text)],
        ))

        with SQLiteDriver.connect({"database": mock_dsn.split(":", 1)[1]}) as driver:
            for table in driver.tables:
                assert parsed[table] == driver.table_columns(table)

    def test_before_and_after_templates(self, books_genders_dsn):
        before = "# custom template\ninstall_utf8_columns qw/title content/;\n\n\n"
        after = "install_table books => schema {\n    trigger pre_insert => $created_at;\n};   \n"

        text = make_schema_at(
            "Your::DB::Schema",
            {"before_template": before, "after_template": after},
            [books_genders_dsn, "", ""],
        )

        assert text.count("install_utf8_columns") == 1
        assert text.startswith(
            "package Your::DB::Schema;\nuse DBIx::Skinny::Schema;\n\n"
            "# custom template\ninstall_utf8_columns qw/title content/;\n\n"
            "install_table books => schema {\n    pk 'id';"
        )
        assert text.endswith(
            "install_table genders => schema {\n    pk '';\n    columns qw/name/;\n};\n\n"
            "install_table books => schema {\n    trigger pre_insert => $created_at;\n};\n\n"
            "1;"
        )

    def test_omitted_templates_absent(self, books_genders_dsn):
        text = make_schema_at("Your::DB::Schema", {"before_template": "", "after_template": None},
                              [books_genders_dsn])
        assert text == EXPECTED_BOOKS_GENDERS

    def test_deprecated_template_option(self, books_genders_dsn, caplog):
        caplog.set_level(logging.WARNING, logger="skinny_loader.loader")
        with pytest.warns(DeprecationWarning):
            text = make_schema_at(
                "Your::DB::Schema",
                {"before_template": "# before", "template": "# legacy"},
                [books_genders_dsn],
            )

        assert "use DBIx::Skinny::Schema;\n\n# before\n\n# legacy\n\ninstall_table books" in text
        assert any(
            record.levelno == logging.WARNING and "deprecated" in record.getMessage()
            for record in caplog.records
        )

    def test_table_template(self, books_genders_dsn):
        table_template = (
            "install_table [% table %] => schema {\n"
            "    pk '[% pk %]';\n"
            "    columns qw/[% columns %]/;\n"
            "    trigger pre_insert => $created_at;\n"
            "};\n"
            "\n"
        )
        text = make_schema_at("Your::DB::Schema", {"table_template": table_template}, [books_genders_dsn])

        assert (
            "install_table books => schema {\n"
            "    pk 'id';\n"
            "    columns qw/id author_id name/;\n"
            "    trigger pre_insert => $created_at;\n"
            "};\n"
        ) in text
        assert text.count("trigger pre_insert") == 2

    def test_table_template_missing_token(self, books_genders_dsn):
        text = make_schema_at(
            "Your::DB::Schema",
            {"table_template": "install_table [% table %] => schema { columns qw/[% columns %]/ };\n"},
            [books_genders_dsn],
        )
        assert "pk" not in text.split("use DBIx::Skinny::Schema;")[1]

    def test_table_template_unknown_token(self, books_genders_dsn):
        with patch.object(SQLiteDriver, "connect") as connect:
            with pytest.raises(TemplateError):
                make_schema_at("Your::DB::Schema", {"table_template": "[% table %] [% type %]"},
                               [books_genders_dsn])
            connect.assert_not_called()

    def test_unknown_option(self, books_genders_dsn):
        with pytest.raises(SchemaLoaderError, match="table_templat"):
            make_schema_at("Your::DB::Schema", {"table_templat": "x"}, [books_genders_dsn])

    def test_composite_pk_fails_by_default(self, composite_dsn):
        with pytest.raises(CompositePrimaryKeyError):
            make_schema_at("Your::DB::Schema", {}, [composite_dsn])

    def test_composite_pk_empty(self, composite_dsn):
        text = make_schema_at("Your::DB::Schema", {"composite_pk": "empty"}, [composite_dsn])
        assert (
            "install_table book_tags => schema {\n"
            "    pk '';\n"
            "    columns qw/book_id tag/;\n"
        ) in text

    def test_invalid_composite_pk_mode(self, books_genders_dsn):
        with pytest.raises(SchemaLoaderError):
            make_schema_at("Your::DB::Schema", {"composite_pk": "skip"}, [books_genders_dsn])

    def test_requires_connect_info(self):
        with pytest.raises(SchemaLoaderError):
            Loader().make_schema_at("Your::DB::Schema", {}, None)

    def test_no_deprecation_warning_without_template(self, books_genders_dsn):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            make_schema_at("Your::DB::Schema", {"before_template": "# before"}, [books_genders_dsn])
