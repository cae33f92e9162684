#!/usr/bin/env python3
"""
Configuration management for the Netgear access-control client.
Centralizes configuration loading and validation.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

log = logging.getLogger(__name__)


@dataclass
class RouterConfig:
    """
    Router connection settings with validation.
    """
    base_url: str
    username: Optional[str] = None
    password: Optional[str] = None
    verify_ssl: bool = False
    timeout: int = 10
    max_retries: int = 3
    cache_ttl_minutes: float = 5

    known_devices_file: Optional[str] = None
    log_file: Optional[str] = None

    def __post_init__(self):
        """Validate configuration after initialization."""
        if not self.base_url:
            raise ValueError("base_url is required")

        if not (self.base_url.startswith('http://') or self.base_url.startswith('https://')):
            raise ValueError("base_url must start with http:// or https://")

        # Clamp numeric values to safe ranges
        self.timeout = max(1, min(self.timeout, 300))  # 1-300 seconds
        self.max_retries = max(0, min(self.max_retries, 10))  # 0-10 retries
        self.cache_ttl_minutes = max(0, min(self.cache_ttl_minutes, 60))  # 0-60 minutes

        self.base_url = self.base_url.rstrip('/')
        self.username = self.username.strip() if self.username else None

    @classmethod
    def from_env(cls, env_file: str = ".env") -> "RouterConfig":
        """
        Load configuration from the environment, reading env_file first if present.

        Args:
            env_file: Path to environment file

        Returns:
            RouterConfig instance

        Raises:
            ValueError: If NETGEAR_URL is not set
        """
        env_path = Path(env_file).expanduser()
        if env_path.exists():
            load_dotenv(env_path, override=True)
            log.debug(f"Loaded environment from {env_path}")

        if 'NETGEAR_URL' not in os.environ:
            raise ValueError(
                f"NETGEAR_URL environment variable required. "
                f"{'Create ' + env_file if not env_path.exists() else 'Check ' + env_file}"
            )

        return cls(
            base_url=os.environ['NETGEAR_URL'],
            username=os.environ.get('NETGEAR_USERNAME'),
            password=os.environ.get('NETGEAR_PASSWORD'),
            verify_ssl=os.environ.get('NETGEAR_VERIFY_SSL', 'false').lower() == 'true',
            timeout=int(os.environ.get('NETGEAR_TIMEOUT', '10')),
            max_retries=int(os.environ.get('NETGEAR_MAX_RETRIES', '3')),
            cache_ttl_minutes=float(os.environ.get('NETGEAR_CACHE_TTL_MINUTES', '5')),
            known_devices_file=os.environ.get('NETGEAR_KNOWN_DEVICES'),
            log_file=os.environ.get('NETGEAR_LOG_FILE'),
        )

    def to_dict(self) -> dict:
        """
        Export configuration as a dictionary, leaving out the password.

        Returns:
            Dictionary with the non-secret configuration values
        """
        return {
            'base_url': self.base_url,
            'username': self.username,
            'verify_ssl': self.verify_ssl,
            'timeout': self.timeout,
            'max_retries': self.max_retries,
            'cache_ttl_minutes': self.cache_ttl_minutes,
            'known_devices_file': self.known_devices_file,
            'log_file': self.log_file,
        }
