"""
Loader configuration from YAML files and the environment.

Example ``schema.yaml``::

    schema_class: Your::DB::Schema
    connect_info:
      dsn: SQLite:test.db
      username: ""
      password: ""
    before_template:
      file: templates/before.pl
    table_template: |
      install_table [% table %] => schema {
          pk '[% pk %]';
          columns qw/[% columns %]/;
      };
    composite_pk: error
    output: lib/Your/DB/Schema.pm
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

import yaml

from skinny_loader.exceptions import ConfigError
from skinny_loader.models import ConnectInfo

logger = logging.getLogger(__name__)


TEMPLATE_KEYS = ("before_template", "template", "after_template", "table_template")

ENV_DSN = "SKINNY_DSN"
ENV_USERNAME = "SKINNY_USERNAME"
ENV_PASSWORD = "SKINNY_PASSWORD"


@dataclass
class LoaderConfig:
    """Settings for one generation run."""
    schema_class: Optional[str] = None
    connect_info: Optional[ConnectInfo] = None
    before_template: Optional[str] = None
    template: Optional[str] = None
    after_template: Optional[str] = None
    table_template: Optional[str] = None
    composite_pk: str = "error"
    output: Optional[Path] = None

    @classmethod
    def from_file(cls, path: Path) -> LoaderConfig:
        """
        Load configuration from a YAML file.

        Template values may be inline text or ``{file: path}`` mappings;
        relative paths resolve against the config file's directory.

        Args:
            path: Path to the YAML file

        Returns:
            LoaderConfig
        """
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")

        with open(path, "r") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file must contain a mapping: {path}")

        config = cls.from_dict(data, base_dir=path.parent)
        logger.info(f"Loaded config from {path}")
        return config

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base_dir: Optional[Path] = None) -> LoaderConfig:
        """Create from dictionary."""
        base_dir = Path(base_dir) if base_dir else Path.cwd()

        connect_info = data.get("connect_info")
        templates = {
            key: _read_template(data.get(key), base_dir, key)
            for key in TEMPLATE_KEYS
        }
        output = data.get("output")

        try:
            return cls(
                schema_class=data.get("schema_class"),
                connect_info=ConnectInfo.coerce(connect_info) if connect_info else None,
                composite_pk=data.get("composite_pk") or "error",
                output=base_dir / output if output else None,
                **templates,
            )
        except TypeError as e:
            raise ConfigError(f"Invalid connect_info: {e}") from e

    def options(self) -> Dict[str, Any]:
        """Options mapping for ``make_schema_at``, without unset entries."""
        options: Dict[str, Any] = {
            key: getattr(self, key)
            for key in TEMPLATE_KEYS
            if getattr(self, key)
        }
        options["composite_pk"] = self.composite_pk
        return options


def _read_template(value: Any, base_dir: Path, key: str) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, Mapping) and "file" in value:
        template_path = base_dir / value["file"]
        if not template_path.exists():
            raise ConfigError(f"Template file for {key} not found: {template_path}")
        return template_path.read_text(encoding="utf-8")
    raise ConfigError(f"{key} must be text or a mapping with a 'file' key")


def connect_info_from_env(environ: Optional[Mapping[str, str]] = None) -> Optional[ConnectInfo]:
    """Read connect info from SKINNY_DSN/SKINNY_USERNAME/SKINNY_PASSWORD."""
    environ = os.environ if environ is None else environ
    dsn = environ.get(ENV_DSN)
    if not dsn:
        return None
    return ConnectInfo(
        dsn=dsn,
        username=environ.get(ENV_USERNAME, ""),
        password=environ.get(ENV_PASSWORD, ""),
    )


def attribute_provider(owner: Any) -> Callable[[], ConnectInfo]:
    """
    Build a connect-info provider from an object's ``attribute`` mapping.

    This lets an application hand its database class to the loader so the
    schema picks up the same dsn/username/password, e.g.::

        load_schema(connect_info_provider=attribute_provider(MyApp.DB))
    """
    def provide() -> ConnectInfo:
        attribute = getattr(owner, "attribute", None)
        if callable(attribute):
            attribute = attribute()
        if not isinstance(attribute, Mapping):
            raise ConfigError(f"{owner!r} has no attribute mapping with connect info")
        return ConnectInfo.coerce({key: attribute.get(key) for key in ("dsn", "username", "password")})

    return provide
