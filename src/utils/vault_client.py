"""
HashiCorp Vault client for fetching database credentials

Reads the source and destination connection secrets from the
KV v2 secrets engine over the HTTP API.
"""

import logging
import os
import re
from typing import Any

import requests

logger = logging.getLogger(__name__)

DATABASE_ROLES = ("source", "destination")
REQUIRED_FIELDS = ("host", "database", "username", "password")
SAFE_PATH = re.compile(r"^[a-zA-Z0-9/_-]+$")


class VaultClient:
    """
    HashiCorp Vault client for secrets management

    Uses the KV v2 secrets engine; secret paths are given without the
    ``data/`` segment, which is inserted after the mount point.
    """

    def __init__(
        self,
        vault_addr: str | None = None,
        vault_token: str | None = None,
        namespace: str | None = None,
        mount_path: str = "secret/database",
        timeout: float = 10.0,
    ):
        """
        Initialize Vault client

        Args:
            vault_addr: Vault server address (default: VAULT_ADDR env var)
            vault_token: Vault authentication token (default: VAULT_TOKEN env var)
            namespace: Vault namespace (optional, for Vault Enterprise)
            mount_path: Prefix under which "source" and "destination" secrets live
            timeout: HTTP timeout in seconds

        Raises:
            ValueError: If vault_addr or vault_token are not provided
        """
        self.vault_addr = vault_addr or os.getenv("VAULT_ADDR")
        self.vault_token = vault_token or os.getenv("VAULT_TOKEN")
        self.namespace = namespace
        self.mount_path = mount_path.strip("/")
        self.timeout = timeout

        if not self.vault_addr:
            raise ValueError(
                "Vault address not provided. Set VAULT_ADDR environment variable "
                "or pass vault_addr parameter."
            )

        if not self.vault_token:
            raise ValueError(
                "Vault token not provided. Set VAULT_TOKEN environment variable "
                "or pass vault_token parameter."
            )

        self.vault_addr = self.vault_addr.rstrip("/")

        self.headers = {
            "X-Vault-Token": self.vault_token,
            "Content-Type": "application/json",
        }
        if self.namespace:
            self.headers["X-Vault-Namespace"] = self.namespace

        logger.info(f"Initialized Vault client for {self.vault_addr}")

    @staticmethod
    def _kv2_path(secret_path: str) -> str:
        """Validate a secret path and insert the KV v2 ``data`` segment."""
        if not secret_path or not isinstance(secret_path, str):
            raise ValueError("secret_path must be a non-empty string")

        if ".." in secret_path or secret_path.startswith("/"):
            raise ValueError(
                f"Invalid secret_path: {secret_path}. "
                "Path traversal attempts are not allowed."
            )

        if not SAFE_PATH.match(secret_path):
            raise ValueError(
                f"Invalid secret_path: {secret_path}. "
                "Only alphanumeric characters, slashes, underscores, and hyphens are allowed."
            )

        if "/data/" in secret_path:
            return secret_path

        mount, _, rest = secret_path.partition("/")
        return f"{mount}/data/{rest}" if rest else f"{mount}/data"

    def get_secret(self, secret_path: str) -> dict[str, Any]:
        """
        Fetch secret data from Vault

        Args:
            secret_path: Path to secret (e.g., "secret/database/source")

        Returns:
            Dictionary containing secret data

        Raises:
            ValueError: If secret_path is invalid or holds no data
            requests.RequestException: If the Vault request fails
        """
        path = self._kv2_path(secret_path)
        url = f"{self.vault_addr}/v1/{path}"

        logger.debug(f"Fetching secret from: {url}")

        response = requests.get(url, headers=self.headers, timeout=self.timeout)

        if response.status_code == 404:
            raise ValueError(f"Secret not found at path: {secret_path}")

        response.raise_for_status()

        secret_data = response.json().get("data", {}).get("data", {})
        if not secret_data:
            raise ValueError(f"No data found in secret at path: {secret_path}")

        return secret_data

    def get_database_credentials(self, role: str) -> dict[str, Any]:
        """
        Fetch connection credentials for one side of the replication

        Args:
            role: "source" or "destination"

        Returns:
            Dictionary with host, port, database, username and password

        Raises:
            ValueError: If role is unknown or required fields are missing
        """
        if role not in DATABASE_ROLES:
            raise ValueError(
                f"Unsupported database role: {role!r}. "
                f"Must be one of: {', '.join(DATABASE_ROLES)}."
            )

        secret_data = dict(self.get_secret(f"{self.mount_path}/{role}"))

        missing_fields = [field for field in REQUIRED_FIELDS if field not in secret_data]
        if missing_fields:
            raise ValueError(
                f"Missing required fields in {role} secret: {', '.join(missing_fields)}"
            )

        secret_data.setdefault("port", 5432)

        logger.info(f"Fetched {role} database credentials from Vault")
        return secret_data

    def health_check(self) -> bool:
        """
        Check if Vault is reachable, initialized and unsealed

        Returns:
            True if Vault is healthy, False otherwise
        """
        url = f"{self.vault_addr}/v1/sys/health"

        try:
            response = requests.get(url, timeout=5)
        except requests.RequestException as e:
            logger.error(f"Vault health check failed: {e}")
            return False

        # 200 active, 429 standby, 472 DR secondary, 473 performance standby
        return response.status_code in (200, 429, 472, 473)
