"""
Configuration for replication runs.

Values are resolved in order: built-in defaults, a YAML file, then
environment variables named ``DBREPLICATE_<SECTION>_<KEY>`` (for example
``DBREPLICATE_SOURCE_PASSWORD`` or ``DBREPLICATE_REPLICATION_BATCH_SIZE``).

Example config.yaml:

    source:
      host: prod-replica.internal
      database: shop
      user: readonly
    destination:
      port: 5433
    replication:
      anonymize: true
      exclude_tables: [audit_log]
      batch_size: 500
"""

import logging
import os
import types
import typing
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

ENV_PREFIX = "DBREPLICATE"
DEFAULT_CONFIG_NAME = "config.yaml"
USER_CONFIG_DIR = Path.home() / ".dbreplicate"

# Section names used by older remote/local configuration files
SECTION_ALIASES = {"remote": "source", "local": "destination", "migration": "replication"}
IGNORED_SECTIONS = frozenset({"docker"})


@dataclass
class DatabaseConfig:
    """Connection settings for one PostgreSQL database."""

    host: str = "localhost"
    port: int = 5432
    database: str = ""
    user: str = ""
    password: str = ""
    sslmode: str = "disable"
    connect_timeout: int = 10

    def connection_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``psycopg2.connect``."""
        return {
            "host": self.host,
            "port": self.port,
            "dbname": self.database,
            "user": self.user,
            "password": self.password,
            "sslmode": self.sslmode,
            "connect_timeout": self.connect_timeout,
        }

    def describe(self) -> str:
        """``user@host:port/database`` without the password, for logs."""
        return f"{self.user}@{self.host}:{self.port}/{self.database}"


@dataclass
class ReplicationSettings:
    """What to copy and how."""

    anonymize: bool = False
    truncate_tables: bool = True
    tables: list[str] = field(default_factory=list)
    exclude_tables: list[str] = field(default_factory=list)
    batch_size: int = 1000
    schema: str = "public"


@dataclass
class LoggingConfig:
    level: str = "info"
    format: str = "console"
    output_path: str = "stdout"


@dataclass
class VaultConfig:
    enabled: bool = False
    addr: str | None = None
    mount_path: str = "secret/database"


@dataclass
class MetricsConfig:
    port: int | None = None


@dataclass
class TracingConfig:
    otlp_endpoint: str | None = None
    console_export: bool = False


@dataclass
class ReplicatorConfig:
    """Complete configuration of the replicator."""

    source: DatabaseConfig = field(default_factory=DatabaseConfig)
    destination: DatabaseConfig = field(
        default_factory=lambda: DatabaseConfig(
            port=5433, database="local_db", user="postgres", password="postgres"
        )
    )
    replication: ReplicationSettings = field(default_factory=ReplicationSettings)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    vault: VaultConfig = field(default_factory=VaultConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    tracing: TracingConfig = field(default_factory=TracingConfig)

    def validate(self) -> None:
        """
        Check required settings.

        Raises:
            ConfigError: On the first invalid setting
        """
        if not self.source.host:
            raise ConfigError("source.host is required")
        if not self.source.database:
            raise ConfigError("source.database is required")
        if not self.source.user:
            raise ConfigError("source.user is required")
        if not self.destination.host:
            raise ConfigError("destination.host is required")
        if not self.destination.database:
            raise ConfigError("destination.database is required")

        if self.replication.batch_size <= 0:
            raise ConfigError("replication.batch_size must be greater than 0")

        if self.logging.format not in ("console", "json"):
            raise ConfigError(
                f"logging.format must be 'console' or 'json', got {self.logging.format!r}"
            )

        overlap = set(self.replication.tables) & set(self.replication.exclude_tables)
        if overlap:
            logger.warning(
                f"Tables listed in both tables and exclude_tables are copied: {sorted(overlap)}"
            )


def _parse_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    text = str(raw).strip().lower()
    if text in ("true", "1", "yes", "on"):
        return True
    if text in ("false", "0", "no", "off", ""):
        return False
    raise ValueError(f"not a boolean: {raw!r}")


def _coerce(raw: Any, annotation: Any) -> Any:
    """Convert a YAML or environment value to the annotated field type."""
    origin = typing.get_origin(annotation)

    if origin in (typing.Union, types.UnionType):
        if raw is None or raw == "":
            return None
        inner = next(arg for arg in typing.get_args(annotation) if arg is not type(None))
        return _coerce(raw, inner)

    if origin is list:
        if raw is None:
            return []
        if isinstance(raw, str):
            return [item.strip() for item in raw.split(",") if item.strip()]
        return [str(item) for item in raw]

    if annotation is bool:
        return _parse_bool(raw)
    if annotation is int:
        if isinstance(raw, bool):
            raise ValueError(f"not an integer: {raw!r}")
        return int(raw)
    if annotation is str:
        return "" if raw is None else str(raw)

    return raw


def _apply_section(section_name: str, target: Any, values: Mapping[str, Any]) -> None:
    known = {f.name: f for f in fields(target)}

    for key, raw in values.items():
        if key not in known:
            raise ConfigError(f"Unknown configuration key: {section_name}.{key}")
        try:
            setattr(target, key, _coerce(raw, known[key].type))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid value for {section_name}.{key}: {e}") from e


def apply_mapping(config: ReplicatorConfig, data: Mapping[str, Any]) -> None:
    """Overlay a nested mapping (parsed YAML) onto ``config``."""
    sections = {f.name for f in fields(config)}

    for raw_name, values in data.items():
        name = SECTION_ALIASES.get(raw_name, raw_name)

        if name in IGNORED_SECTIONS:
            continue
        if name not in sections:
            logger.warning(f"Ignoring unknown configuration section: {raw_name}")
            continue
        if values is None:
            continue
        if not isinstance(values, Mapping):
            raise ConfigError(f"Configuration section {raw_name!r} must be a mapping")

        _apply_section(name, getattr(config, name), values)


def apply_environment(config: ReplicatorConfig, environ: Mapping[str, str]) -> None:
    """Overlay ``DBREPLICATE_<SECTION>_<KEY>`` variables onto ``config``."""
    for section in fields(config):
        target = getattr(config, section.name)
        for option in fields(target):
            env_name = f"{ENV_PREFIX}_{section.name}_{option.name}".upper()
            if env_name in environ:
                _apply_section(section.name, target, {option.name: environ[env_name]})


def find_config_file() -> Path | None:
    """Look for config.yaml in the working directory, then ~/.dbreplicate."""
    for candidate in (Path.cwd() / DEFAULT_CONFIG_NAME, USER_CONFIG_DIR / DEFAULT_CONFIG_NAME):
        if candidate.is_file():
            return candidate
    return None


def load_config(
    path: str | os.PathLike | None = None,
    environ: Mapping[str, str] | None = None,
    validate: bool = True,
) -> ReplicatorConfig:
    """
    Load configuration from defaults, YAML and the environment.

    Args:
        path: Explicit config file; must exist when given
        environ: Environment mapping (default: os.environ)
        validate: Run ``ReplicatorConfig.validate`` before returning

    Raises:
        ConfigError: If the file is unreadable or a value is invalid
    """
    config = ReplicatorConfig()

    if path is not None:
        config_path = Path(path)
        if not config_path.is_file():
            raise ConfigError(f"Config file not found: {config_path}")
    else:
        config_path = find_config_file()

    if config_path is not None:
        try:
            with open(config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to read config file {config_path}: {e}") from e

        if not isinstance(data, Mapping):
            raise ConfigError(f"Config file {config_path} must contain a mapping")

        apply_mapping(config, data)
        logger.debug(f"Loaded configuration from {config_path}")

    apply_environment(config, os.environ if environ is None else environ)

    if validate:
        config.validate()

    return config
