"""
Process configuration.

Values come from environment variables (optionally loaded from a `.env` file
with python-dotenv) and are gathered once into an immutable `Settings`
object that is passed explicitly to the services that need it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from domain.errors import ConfigurationError, InvalidInputError
from domain.transaction import validate_commission_rate

DEFAULT_COMMISSION_RATE = Decimal("0.10")

STORE_BACKENDS = ("supabase", "memory")


@dataclass(frozen=True, slots=True)
class Settings:
    """Runtime configuration for the land registry."""

    default_commission_rate: Decimal = DEFAULT_COMMISSION_RATE
    jwt_secret: Optional[str] = None
    jwt_expires_hours: int = 24
    jwt_issuer: str = "land-registry"
    jwt_audience: str = "land-registry-users"
    bcrypt_rounds: int = 12
    store_backend: str = "supabase"
    log_level: str = "INFO"
    log_format: str = "standard"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    max_page_size: int = 100

    def __post_init__(self) -> None:
        try:
            validate_commission_rate(self.default_commission_rate)
        except InvalidInputError as e:
            raise ConfigurationError(f"COMMISSION_RATE is invalid: {e.message}") from None
        if self.store_backend not in STORE_BACKENDS:
            raise ConfigurationError(
                f"STORE_BACKEND must be one of {', '.join(STORE_BACKENDS)}, got '{self.store_backend}'"
            )
        if not 4 <= self.bcrypt_rounds <= 31:
            raise ConfigurationError("BCRYPT_ROUNDS must be between 4 and 31")
        if self.jwt_expires_hours <= 0:
            raise ConfigurationError("JWT_EXPIRES_HOURS must be positive")
        if self.max_page_size <= 0:
            raise ConfigurationError("MAX_PAGE_SIZE must be positive")

    @property
    def jwt_expires_in(self) -> str:
        """Human-readable token lifetime, e.g. "24h"."""
        return f"{self.jwt_expires_hours}h"

    def require_jwt_secret(self) -> str:
        if not self.jwt_secret:
            raise ConfigurationError("JWT_SECRET environment variable is not set")
        return self.jwt_secret

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "Settings":
        """Create settings from environment variables."""

        load_dotenv(dotenv_path=env_file or Path(__file__).parent.parent / ".env")

        try:
            return cls(
                default_commission_rate=Decimal(os.getenv("COMMISSION_RATE", "0.10")),
                jwt_secret=os.getenv("JWT_SECRET"),
                jwt_expires_hours=int(os.getenv("JWT_EXPIRES_HOURS", "24")),
                jwt_issuer=os.getenv("JWT_ISSUER", "land-registry"),
                jwt_audience=os.getenv("JWT_AUDIENCE", "land-registry-users"),
                bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", "12")),
                store_backend=os.getenv("STORE_BACKEND", "supabase").lower(),
                log_level=os.getenv("LOG_LEVEL", "INFO"),
                log_format=os.getenv("LOG_FORMAT", "standard"),
                cors_origins=[
                    origin.strip()
                    for origin in os.getenv("CORS_ORIGINS", "*").split(",")
                    if origin.strip()
                ],
                max_page_size=int(os.getenv("MAX_PAGE_SIZE", "100")),
            )
        except ArithmeticError as e:
            raise ConfigurationError(f"COMMISSION_RATE must be a number: {e}") from e
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}") from e


__all__ = ["DEFAULT_COMMISSION_RATE", "Settings"]
