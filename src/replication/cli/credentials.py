"""
Credential management and logging setup for CLI.

Database credentials come from the configuration file and the
environment; when ``vault.enabled`` is set they are fetched from Vault
instead and override both.
"""

import logging

import requests

from utils.logging import setup_logging
from utils.vault_client import VaultClient

from ..config import DatabaseConfig, ReplicatorConfig
from ..errors import ConfigError

logger = logging.getLogger(__name__)

CONSOLE_OUTPUTS = ("stdout", "stderr", "")


def configure_logging(config: ReplicatorConfig, level_override: str | None = None) -> None:
    """
    Setup logging configuration

    Args:
        config: Loaded configuration (logging section)
        level_override: Level from --log-level, wins over the config
    """
    output_path = config.logging.output_path or ""
    setup_logging(
        level=level_override or config.logging.level,
        log_file=None if output_path in CONSOLE_OUTPUTS else output_path,
        console_output=True,
        json_format=config.logging.format == "json",
    )


def _apply_secret(target: DatabaseConfig, secret: dict) -> None:
    target.host = secret["host"]
    target.port = int(secret.get("port", 5432))
    target.database = secret["database"]
    target.user = secret["username"]
    target.password = secret["password"]
    if "sslmode" in secret:
        target.sslmode = secret["sslmode"]


def apply_vault_credentials(config: ReplicatorConfig, client: VaultClient | None = None) -> None:
    """
    Replace source and destination credentials with the Vault secrets

    Does nothing unless ``config.vault.enabled`` is set.

    Raises:
        ConfigError: If Vault is unreachable or a secret is incomplete
    """
    if not config.vault.enabled:
        return

    try:
        vault = client or VaultClient(
            vault_addr=config.vault.addr,
            mount_path=config.vault.mount_path,
        )
        if not vault.health_check():
            raise ConfigError(f"Vault at {vault.vault_addr} is sealed or unreachable")
        _apply_secret(config.source, vault.get_database_credentials("source"))
        _apply_secret(config.destination, vault.get_database_credentials("destination"))
    except (ValueError, KeyError, requests.RequestException) as e:
        raise ConfigError(f"Failed to fetch credentials from Vault: {e}") from e

    logger.info("Successfully fetched credentials from Vault")
