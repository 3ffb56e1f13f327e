"""
Configuration and application state management.
"""

import os
import re
from datetime import timedelta
from pathlib import Path
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from .exceptions import ConfigError, StoreError

if TYPE_CHECKING:
    from .admin import AdminService
    from .auth import AuthService
    from .database import Database
    from .puller import FeedPuller
    from .sync import Synchronizer

# Load environment variables
load_dotenv()

DB_TYPES = ("sqlite", "mysql", "postgres")

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_DURATION_UNITS = {
    "h": timedelta(hours=1),
    "m": timedelta(minutes=1),
    "s": timedelta(seconds=1),
    "ms": timedelta(milliseconds=1),
}


def _parse_bool(value: str | None, default: bool = False) -> bool:
    """Parse boolean from environment variable."""
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def parse_duration(value: str) -> timedelta:
    """
    Parse a duration string such as "15m", "1h30m" or "90s".

    Raises:
        ConfigError: If the string is empty or contains unknown units
    """
    text = value.strip().lower()
    if not text:
        raise ConfigError("Duration cannot be empty")

    total = timedelta()
    position = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if position != len(text):
        raise ConfigError(f"Invalid duration: {value!r}")
    return total


class Config:
    """Application configuration from environment."""
    # Token signing secret, literal or read from an absolute file path
    AUTH_SECRET: str = os.getenv("AUTH_SECRET", "")
    AUTH_SECRET_FILE_PATH: str = os.getenv("AUTH_SECRET_FILE_PATH", "")

    # Transport for the user-facing interface
    ENABLE_TLS: bool = _parse_bool(os.getenv("ENABLE_TLS"))
    DOMAIN: str = os.getenv("DOMAIN", "")
    CERT_CACHE_DIR: str = os.getenv("CERT_CACHE_DIR", "")
    HTTP_PORT: int = int(os.getenv("HTTP_PORT", "80"))
    TLS_PORT: int = int(os.getenv("TLS_PORT", "443"))

    # Store backend
    DB_TYPE: str = os.getenv("DB_TYPE", "sqlite")
    DB_CONNECTION: str = os.getenv("DB_CONNECTION", "/var/syndication/syndication.db")

    # Synchronizer
    SYNC_INTERVAL: str = os.getenv("SYNC_INTERVAL", "15m")
    SYNC_WORKERS: int = int(os.getenv("SYNC_WORKERS", "4"))
    SYNC_DELETE_AFTER_DAYS: int = int(os.getenv("SYNC_DELETE_AFTER_DAYS", "0"))

    # Admin channel
    ADMIN_SOCKET_PATH: str = os.getenv("ADMIN_SOCKET_PATH", "/var/run/syndication/admin")
    ADMIN_MAX_CONNECTIONS: int = int(os.getenv("ADMIN_MAX_CONNECTIONS", "5"))

    # Self-service sign-up on /auth/register
    ALLOW_REGISTRATION: bool = _parse_bool(os.getenv("ALLOW_REGISTRATION"), True)

    # Token lifetimes
    API_KEY_EXPIRATION: str = os.getenv("API_KEY_EXPIRATION", "72h")
    REFRESH_KEY_EXPIRATION: str = os.getenv("REFRESH_KEY_EXPIRATION", "168h")

    PULL_TIMEOUT: str = os.getenv("PULL_TIMEOUT", "30s")
    SHUTDOWN_TIMEOUT: str = os.getenv("SHUTDOWN_TIMEOUT", "30s")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    def auth_secret(self) -> str:
        """
        Resolve the token signing secret.

        A secret file takes precedence over the literal value.

        Raises:
            ConfigError: If the file path is relative or cannot be read
        """
        if self.AUTH_SECRET_FILE_PATH:
            path = Path(self.AUTH_SECRET_FILE_PATH)
            if not path.is_absolute():
                raise ConfigError("Auth secret file path must be absolute")
            try:
                return path.read_text().strip()
            except OSError as e:
                raise ConfigError(f"Could not read auth secret file: {e}")
        return self.AUTH_SECRET

    def sync_interval(self) -> timedelta:
        return parse_duration(self.SYNC_INTERVAL)

    def access_key_ttl(self) -> timedelta:
        return parse_duration(self.API_KEY_EXPIRATION)

    def refresh_key_ttl(self) -> timedelta:
        return parse_duration(self.REFRESH_KEY_EXPIRATION)

    def pull_timeout(self) -> float:
        return parse_duration(self.PULL_TIMEOUT).total_seconds()

    def shutdown_timeout(self) -> float:
        return parse_duration(self.SHUTDOWN_TIMEOUT).total_seconds()

    def validate(self) -> None:
        """
        Check the configuration for fatal problems.

        Raises:
            ConfigError: On the first invalid setting found
        """
        if not self.auth_secret():
            raise ConfigError("An auth secret is required (AUTH_SECRET or AUTH_SECRET_FILE_PATH)")

        self._validate_database()

        if self.sync_interval() < timedelta(minutes=1):
            raise ConfigError("Sync interval should be 1 minute or greater")
        if self.SYNC_WORKERS < 1:
            raise ConfigError("Sync worker count must be positive")
        if self.SYNC_DELETE_AFTER_DAYS < 0:
            raise ConfigError("Entry retention days cannot be negative")

        if not Path(self.ADMIN_SOCKET_PATH).is_absolute():
            raise ConfigError("Admin socket path must be absolute")
        if self.ADMIN_MAX_CONNECTIONS < 1:
            raise ConfigError("Admin max connections must be positive")

        if self.access_key_ttl() <= timedelta() or self.refresh_key_ttl() <= timedelta():
            raise ConfigError("API key expiration must be positive")

        for port in (self.HTTP_PORT, self.TLS_PORT):
            if not 0 < port < 65536:
                raise ConfigError(f"Invalid port: {port}")

        if self.ENABLE_TLS and not (self.DOMAIN and self.CERT_CACHE_DIR):
            raise ConfigError("TLS requires DOMAIN and CERT_CACHE_DIR")

        # Surface unparsable durations here rather than at first use
        self.pull_timeout()
        self.shutdown_timeout()

    def _validate_database(self) -> None:
        if self.DB_TYPE not in DB_TYPES:
            raise ConfigError(f"Unsupported database type: {self.DB_TYPE}")

        if self.DB_TYPE == "sqlite":
            if not self.DB_CONNECTION:
                raise ConfigError("DB path cannot be empty")
            if not Path(self.DB_CONNECTION).is_absolute():
                raise ConfigError("DB path must be absolute")
        elif self.DB_TYPE == "mysql":
            if "parseTime=True" not in self.DB_CONNECTION:
                raise ConfigError("parseTime=True is required for a MySQL connection")


config = Config()


class AppState:
    """Shared application state."""
    db: "Database | None" = None
    auth: "AuthService | None" = None
    puller: "FeedPuller | None" = None
    synchronizer: "Synchronizer | None" = None
    admin: "AdminService | None" = None


state = AppState()


def get_db() -> "Database":
    """Dependency to get the database instance."""
    if state.db is None:
        raise StoreError("Database not initialized")
    return state.db
