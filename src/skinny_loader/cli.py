"""
Command-line interface for skinny_loader.

Provides generate, inspect and drivers commands.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from skinny_loader import __version__
from skinny_loader.config import LoaderConfig, connect_info_from_env
from skinny_loader.drivers import supported_drivers
from skinny_loader.exceptions import SchemaLoaderError
from skinny_loader.loader import COMPOSITE_PK_MODES, Loader
from skinny_loader.models import ConnectInfo

console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with Rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _resolve_connect_info(
    config: LoaderConfig,
    dsn: Optional[str],
    username: Optional[str],
    password: Optional[str],
) -> ConnectInfo:
    """Command-line options win over the config file, which wins over the environment."""
    info = config.connect_info or connect_info_from_env()
    if dsn:
        # credentials from the config file or environment still apply
        info = ConnectInfo(
            dsn=dsn,
            username=info.username if info else "",
            password=info.password if info else "",
        )
    if info is None:
        raise click.UsageError("No DSN given. Use --dsn, a config file, or SKINNY_DSN.")
    if username is not None:
        info.username = username
    if password is not None:
        info.password = password
    return info


def _load_config(config_path: Optional[Path]) -> LoaderConfig:
    if config_path is None:
        return LoaderConfig()
    return LoaderConfig.from_file(config_path)


connection_options = [
    click.option("--dsn", type=str, default=None, help="Data source, e.g. SQLite:test.db or Pg:dbname=app"),
    click.option("--username", type=str, default=None, help="Database user"),
    click.option("--password", type=str, default=None, help="Database password"),
    click.option(
        "--config",
        "config_path",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        default=None,
        help="YAML file with connect info and generation options",
    ),
]


def with_connection_options(func):
    for option in reversed(connection_options):
        func = option(func)
    return func


@click.group()
@click.version_option(version=__version__, prog_name="skinny-loader")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
def cli(verbose: bool) -> None:
    """
    Skinny Loader - schema loader for DBIx::Skinny

    Reads tables, columns and primary keys from SQLite, MySQL or PostgreSQL
    and publishes a static schema class.
    """
    setup_logging(verbose)


@cli.command()
@click.argument("schema_class", required=False)
@with_connection_options
@click.option(
    "--before-template",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="File inserted before the install_table blocks",
)
@click.option(
    "--after-template",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="File inserted after the install_table blocks",
)
@click.option(
    "--table-template",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="File replacing the default install_table block",
)
@click.option(
    "--composite-pk",
    type=click.Choice(COMPOSITE_PK_MODES),
    default=None,
    help="Fail on composite primary keys (error) or publish pk '' (empty)",
)
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the schema class here instead of stdout",
)
def generate(
    schema_class: Optional[str],
    dsn: Optional[str],
    username: Optional[str],
    password: Optional[str],
    config_path: Optional[Path],
    before_template: Optional[Path],
    after_template: Optional[Path],
    table_template: Optional[Path],
    composite_pk: Optional[str],
    output: Optional[Path],
) -> None:
    """
    Publish a static schema class.

    Examples:

        skinny-loader generate Your::DB::Schema --dsn SQLite:test.db \\
            -o lib/Your/DB/Schema.pm

        skinny-loader generate --config schema.yaml
    """
    try:
        config = _load_config(config_path)
        schema_class = schema_class or config.schema_class
        if not schema_class:
            raise click.UsageError("No schema class given (argument or schema_class in config).")

        info = _resolve_connect_info(config, dsn, username, password)

        if before_template:
            config.before_template = before_template.read_text(encoding="utf-8")
        if after_template:
            config.after_template = after_template.read_text(encoding="utf-8")
        if table_template:
            config.table_template = table_template.read_text(encoding="utf-8")
        if composite_pk:
            config.composite_pk = composite_pk

        text = Loader().make_schema_at(schema_class, config.options(), info)
    except SchemaLoaderError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    output = output or config.output
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text + "\n", encoding="utf-8")
        console.print(f"[green]Schema written to: {output}[/green]")
    else:
        click.echo(text)


@cli.command()
@with_connection_options
def inspect(
    dsn: Optional[str],
    username: Optional[str],
    password: Optional[str],
    config_path: Optional[Path],
) -> None:
    """
    Show tables, primary keys and columns.

    Example:

        skinny-loader inspect --dsn "mysql:database=app;host=127.0.0.1" \\
            --username app --password secret
    """
    try:
        config = _load_config(config_path)
        info = _resolve_connect_info(config, dsn, username, password)
        schema = Loader().load_schema(connect_info=info)
    except SchemaLoaderError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    table = Table(title="Tables")
    table.add_column("Table", style="cyan")
    table.add_column("PK", style="yellow")
    table.add_column("Columns", style="green")

    for table_schema in schema:
        table.add_row(
            table_schema.name,
            table_schema.pk or "-",
            " ".join(table_schema.columns),
        )

    Console().print(table)


@cli.command()
def drivers() -> None:
    """List supported DSN schemes."""
    for scheme in supported_drivers():
        click.echo(scheme)


if __name__ == "__main__":
    cli()
