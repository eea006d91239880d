"""
Kameleoon client configuration from the environment.

ENVIRONMENT VARIABLES:
    KAMELEOON_SITE_CODE: Site code of the Kameleoon project
    KAMELEOON_CLIENT_ID: API client ID
    KAMELEOON_CLIENT_SECRET: API client secret
    KAMELEOON_CONFIG_PATH: Path to a Kameleoon SDK configuration file (optional)
    KAMELEOON_ENVIRONMENT: Feature flag environment, e.g. "production" (optional)
    KAMELEOON_REFRESH_INTERVAL_MINUTE: Configuration refresh interval (default: 60)
    KAMELEOON_DEFAULT_TIMEOUT_MS: Network timeout in milliseconds (default: 10000)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

from kameleoon import KameleoonClientConfig
from kameleoon.exceptions import KameleoonError

from .exceptions import VendorError, VendorErrorKind

# =============================================================================
# CONFIGURATION FROM ENVIRONMENT
# =============================================================================

KAMELEOON_SITE_CODE = os.getenv("KAMELEOON_SITE_CODE", "")
KAMELEOON_CLIENT_ID = os.getenv("KAMELEOON_CLIENT_ID", "")
KAMELEOON_CLIENT_SECRET = os.getenv("KAMELEOON_CLIENT_SECRET", "")
KAMELEOON_CONFIG_PATH = os.getenv("KAMELEOON_CONFIG_PATH", "")
KAMELEOON_ENVIRONMENT = os.getenv("KAMELEOON_ENVIRONMENT", "")
KAMELEOON_REFRESH_INTERVAL_MINUTE = int(os.getenv("KAMELEOON_REFRESH_INTERVAL_MINUTE", "60"))
KAMELEOON_DEFAULT_TIMEOUT_MS = int(os.getenv("KAMELEOON_DEFAULT_TIMEOUT_MS", "10000"))


@dataclass
class ClientSettings:
    """Settings used to build a Kameleoon client."""

    site_code: str = ""
    client_id: str = ""
    client_secret: str = ""
    config_path: str | None = None
    environment: str | None = None
    refresh_interval_minute: int = 60
    default_timeout_millisecond: int = 10000

    @classmethod
    def from_env(cls) -> ClientSettings:
        """Read settings from the KAMELEOON_* environment variables."""
        return cls(
            site_code=KAMELEOON_SITE_CODE,
                client_id=KAMELEOON_CLIENT_ID,
                client_secret=KAMELEOON_CLIENT_SECRET,
            config_path=KAMELEOON_CONFIG_PATH or None,
                environment=KAMELEOON_ENVIRONMENT or None,
                refresh_interval_minute=KAMELEOON_REFRESH_INTERVAL_MINUTE,
                default_timeout_millisecond=KAMELEOON_DEFAULT_TIMEOUT_MS,
        )

    @property
    def has_credentials(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def to_kameleoon_config(self) -> Any:
        """
        Build a KameleoonClientConfig from these settings.

        Returns:
            The SDK config, or None when no credentials are set (the SDK then
            reads config_path instead).

        Raises:
            VendorError: CONFIG kind if the SDK rejects the settings
        """
        if not self.has_credentials:
            return None

        try:
            return KameleoonClientConfig(
                client_id=self.client_id,
                client_secret=self.client_secret,
                refresh_interval_minute=self.refresh_interval_minute,
                default_timeout_millisecond=self.default_timeout_millisecond,
                environment=self.environment,
            )
        except KameleoonError as e:
            raise VendorError(VendorErrorKind.CONFIG, str(e)) from e
