"""
Environment configuration for storelink connections.

Settings are read from ``STORELINK_``-prefixed environment variables,
optionally loaded from a .env file, and validated with pydantic before
being turned into connection maps.
"""

import os
from typing import Any, Dict, Optional, Tuple

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

ENV_PREFIX = "STORELINK_"


def _env(prefix: str, name: str) -> Optional[str]:
    # Empty variables count as unset
    return os.getenv(f"{prefix}{name.upper()}") or None


class SQLSettings(BaseModel):
    """SQL connection settings with validation."""

    dbtype: Optional[str] = Field(default=None, description="sqlite3, mysql or pgsql")
    dbhost: Optional[str] = Field(default=None, description="Database server host")
    dbport: Optional[int] = Field(
        default=None, ge=1, le=65535, description="Database server port"
    )
    dbuser: Optional[str] = Field(default=None, description="Database user")
    dbpass: Optional[str] = Field(default=None, description="Database password")
    dbname: Optional[str] = Field(
        default=None, description="Database name, or file path for sqlite3"
    )

    @field_validator("dbtype")
    @classmethod
    def normalize_dbtype(cls, v: Optional[str]) -> Optional[str]:
        """Database types are matched lower-case."""
        return v.lower() if v else v

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX) -> "SQLSettings":
        """
        Create SQLSettings from environment variables.

        Args:
            prefix: Variable prefix, e.g. ``STORELINK_`` for ``STORELINK_DBTYPE``

        Returns:
            SQLSettings: Validated settings

        Raises:
            ValueError: If a value is invalid
        """
        data = {name: _env(prefix, name) for name in cls.model_fields}
        try:
            return cls(**data)
        except ValidationError as e:
            raise ValueError(f"Configuration validation failed: {e}") from e

    def to_params(self) -> Dict[str, Any]:
        """Connection map for ``SQL`` and the typed SQL wrappers."""
        return self.model_dump(exclude_none=True)

    def __str__(self) -> str:
        """String representation hiding sensitive information."""
        password_display = "***" if self.dbpass else "None"
        return (
            f"SQLSettings(dbtype={self.dbtype}, dbhost={self.dbhost}, "
            f"dbport={self.dbport}, dbuser={self.dbuser}, "
            f"dbpass={password_display}, dbname={self.dbname})"
        )


class RedisSettings(BaseModel):
    """Redis connection settings with validation."""

    redistype: Optional[str] = Field(default=None, description="redis or predis")
    redisscheme: Optional[str] = Field(default=None, description="tcp, tls or unix")
    redishost: Optional[str] = Field(
        default=None, description="Redis server host, or socket path for unix"
    )
    redisport: Optional[int] = Field(
        default=None, ge=1, le=65535, description="Redis server port"
    )
    redispassword: Optional[str] = Field(default=None, description="Redis password")
    redisdatabase: Optional[int] = Field(
        default=None, ge=0, description="Redis database number"
    )
    redistimeout: Optional[float] = Field(
        default=None, gt=0, description="Connection timeout in seconds"
    )

    @field_validator("redistype")
    @classmethod
    def normalize_redistype(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v

    @field_validator("redisscheme")
    @classmethod
    def validate_scheme(cls, v: Optional[str]) -> Optional[str]:
        """Validate scheme is one the clients can dial."""
        valid_schemes = ["tcp", "tls", "unix"]
        if not v:
            return v
        v = v.lower()
        if v not in valid_schemes:
            raise ValueError(f"Scheme must be one of: {valid_schemes}")
        return v

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX) -> "RedisSettings":
        """
        Create RedisSettings from environment variables.

        Args:
            prefix: Variable prefix, e.g. ``STORELINK_`` for ``STORELINK_REDISHOST``

        Returns:
            RedisSettings: Validated settings

        Raises:
            ValueError: If a value is invalid
        """
        data = {name: _env(prefix, name) for name in cls.model_fields}
        try:
            return cls(**data)
        except ValidationError as e:
            raise ValueError(f"Configuration validation failed: {e}") from e

    def to_params(self) -> Dict[str, Any]:
        """Connection map for ``RedisConn`` and the typed Redis wrappers."""
        return self.model_dump(exclude_none=True)

    def __str__(self) -> str:
        """String representation hiding sensitive information."""
        password_display = "***" if self.redispassword else "None"
        return (
            f"RedisSettings(redistype={self.redistype}, redishost={self.redishost}, "
            f"redisport={self.redisport}, redisdatabase={self.redisdatabase}, "
            f"redispassword={password_display})"
        )


def load_settings(
    env_file: Optional[str] = None, prefix: str = ENV_PREFIX
) -> Tuple[SQLSettings, RedisSettings]:
    """
    Load settings from environment variables and .env file.

    Args:
        env_file: Optional path to .env file. If None, looks for .env in current directory.
        prefix: Environment variable prefix

    Returns:
        Tuple of (SQLSettings, RedisSettings)

    Raises:
        ValueError: If a value is invalid
    """
    if env_file is None:
        env_file = ".env"

    if os.path.exists(env_file):
        load_dotenv(env_file)

    return SQLSettings.from_env(prefix), RedisSettings.from_env(prefix)
