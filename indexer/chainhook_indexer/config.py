"""Configuration management for the chainhook indexer."""

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv

# Load environment variables from .env file if present
load_dotenv()


def _optional(name: str) -> Optional[str]:
    """Read an optional env var, treating empty strings as unset."""
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


@dataclass(frozen=True)
class Config:
    """Indexer configuration."""

    # Required
    db_url: str

    # HTTP settings
    host: str = "0.0.0.0"
    port: int = 4001
    max_payload_bytes: int = 2 * 1024 * 1024
    cors_allow_origins: Tuple[str, ...] = ("*",)

    # Chainhook settings
    chainhook_auth_token: Optional[str] = None
    expected_contract_identifier: Optional[str] = None

    # Database pool settings
    db_pool_size: int = 10
    db_pool_timeout_seconds: int = 30
    db_pool_recycle_seconds: int = 30

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        db_url = _optional("DATABASE_URL") or _optional("DB_URL")
        if not db_url:
            raise ValueError("DATABASE_URL environment variable is required")

        origins = _optional("CORS_ALLOW_ORIGINS") or "*"

        return cls(
            db_url=db_url,
            # HTTP settings
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "4001")),
            max_payload_bytes=int(os.getenv("MAX_PAYLOAD_BYTES", str(2 * 1024 * 1024))),
            cors_allow_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
            # Chainhook settings
            chainhook_auth_token=_optional("CHAINHOOK_AUTH_TOKEN"),
            expected_contract_identifier=_optional("EXPECTED_CONTRACT_IDENTIFIER"),
            # Database pool settings
            db_pool_size=int(os.getenv("DB_POOL_SIZE", "10")),
            db_pool_timeout_seconds=int(os.getenv("DB_POOL_TIMEOUT_SECONDS", "30")),
            db_pool_recycle_seconds=int(os.getenv("DB_POOL_RECYCLE_SECONDS", "30")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """Validate configuration values."""
        if not self.db_url:
            raise ValueError("db_url is required")
        if not 0 < self.port < 65536:
            raise ValueError("port must be between 1 and 65535")
        if self.max_payload_bytes <= 0:
            raise ValueError("max_payload_bytes must be > 0")
        if self.db_pool_size <= 0:
            raise ValueError("db_pool_size must be > 0")
        if self.db_pool_timeout_seconds <= 0:
            raise ValueError("db_pool_timeout_seconds must be > 0")
        if self.db_pool_recycle_seconds <= 0:
            raise ValueError("db_pool_recycle_seconds must be > 0")

    @property
    def auth_enabled(self) -> bool:
        """Whether inbound chainhook deliveries must carry a bearer token."""
        return self.chainhook_auth_token is not None
