"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All credentials come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - Rates are Decimal; a location rate overrides its zone, a zone overrides the default

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
    - dict/list fields are read from JSON in the environment, e.g.
      OWNER_TOKENS='{"tok-ana": "ana@example.com"}'
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from parkledger.core.domain_types import SettlementMode


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://parking:parking@db:5432/parking"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres hands out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Billing
    default_rate_per_hour: Decimal = Decimal("6.00")
    # Keys are exact slots ("A-23") or zones ("A"); values are per-hour rates
    location_rates: dict[str, Decimal] = {}
    settlement_mode: SettlementMode = SettlementMode.EXIT_SETTLES

    # Lot
    lot_capacity: int = 100

    @field_validator("lot_capacity")
    @classmethod
    def capacity_not_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("lot_capacity cannot be negative")
        return v

    # Identity — token -> owner id, and tokens granting the operator role
    owner_tokens: dict[str, str] = {}
    operator_tokens: list[str] = []

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
