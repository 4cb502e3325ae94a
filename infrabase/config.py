# infrabase/config.py
"""
Application Configuration
Uses pydantic-settings for environment variable management
"""

import os
import string
from functools import lru_cache
from ipaddress import IPv4Address
from pathlib import Path
from typing import Annotated, Optional, Tuple

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from infrabase.exceptions import ConfigurationError

# Placeholders accepted by WIREGUARD_PRIVKEY_PATH_TEMPLATE
PRIVKEY_TEMPLATE_FIELDS = frozenset({"hostname", "wireguard_ip"})


def config_env_file() -> Path:
    """Location of the per-user env file (~/.config/infrabase/env)"""
    base = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
    return Path(base) / "infrabase" / "env"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables

    Built once at process start and handed to the components that need
    it; nothing below the CLI/API layer reads the environment itself.
    """

    # === Application ===
    APP_NAME: str = "infrabase"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "WARNING"

    # === API ===
    API_HOST: str = "127.0.0.1"
    API_PORT: int = 8000
    ADMIN_SECRET: str = "change-me-admin-secret"

    # === Database ===
    DATABASE_URL: str = "sqlite:///./infrabase.db"
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10

    # === WireGuard ===
    WIREGUARD_IPV4_START: Optional[IPv4Address] = None
    WIREGUARD_IPV4_END: Optional[IPv4Address] = None
    WIREGUARD_PRIVKEY_PATH_TEMPLATE: Optional[str] = None

    # === Defaults for add-machine ===
    DEFAULT_OWNER: Optional[str] = None
    DEFAULT_SSH_USER: Optional[str] = None
    DEFAULT_SSH_PORT: Optional[Annotated[int, Field(ge=1, le=65535)]] = None
    DEFAULT_PROVIDER_ID: Optional[int] = None

    # Later files win: .env overrides the per-user file, whose path is fixed at import
    model_config = SettingsConfigDict(
        env_file=(config_env_file(), ".env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level {v!r}")
        return v

    @field_validator("WIREGUARD_PRIVKEY_PATH_TEMPLATE")
    @classmethod
    def validate_privkey_template(cls, v: Optional[str]) -> Optional[str]:
        """Only {hostname} and {wireguard_ip} may be substituted"""
        if v is None:
            return v
        try:
            fields = [name for _, name, _, _ in string.Formatter().parse(v) if name is not None]
        except ValueError as e:
            raise ValueError(f"Malformed path template {v!r}: {e}")
        unknown = set(fields) - PRIVKEY_TEMPLATE_FIELDS
        if unknown or "" in fields:
            raise ValueError(
                f"Path template {v!r} may only use "
                f"{{hostname}} and {{wireguard_ip}}, got {sorted(unknown) or ['{}']}"
            )
        return v

    @model_validator(mode="after")
    def validate_wireguard_range(self) -> "Settings":
        start, end = self.WIREGUARD_IPV4_START, self.WIREGUARD_IPV4_END
        if start is not None and end is not None and start > end:
            raise ValueError(
                f"WIREGUARD_IPV4_START ({start}) is greater than WIREGUARD_IPV4_END ({end})"
            )
        return self

    def wireguard_range(self) -> Tuple[IPv4Address, IPv4Address]:
        """
        Get the inclusive WireGuard allocation range

        Raises:
            ConfigurationError: If either bound is unset
        """
        for name in ("WIREGUARD_IPV4_START", "WIREGUARD_IPV4_END"):
            if getattr(self, name) is None:
                raise ConfigurationError(f"{name} must be set to allocate WireGuard addresses")
        return self.WIREGUARD_IPV4_START, self.WIREGUARD_IPV4_END

    def privkey_path_template(self) -> str:
        if not self.WIREGUARD_PRIVKEY_PATH_TEMPLATE:
            raise ConfigurationError(
                "WIREGUARD_PRIVKEY_PATH_TEMPLATE must be set to generate WireGuard keys"
            )
        return self.WIREGUARD_PRIVKEY_PATH_TEMPLATE


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings instance
    Call once at the entry point and pass the result down
    """
    return Settings()
