"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - anthropic_api_key defaults to empty: the reasoning client raises
      ConfigurationError on use instead of failing at startup

Design Decisions:
    - Budget caps and policy knobs are informational: exposed by the policy
      snapshot, never enforced as a hard stop
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = "postgresql+asyncpg://axle:axle@db:5432/axle"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres hands out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 5
    database_max_overflow: int = 5

    # Anthropic (reasoning service)
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-6"
    anthropic_max_tokens: int = 1024

    # Agent
    approval_threshold_usd: float = 25.0
    cost_per_call_usd: float = 0.003
    agent_autostart: bool = True
    agent_interval_seconds: float = 60.0
    agent_startup_delay_seconds: float = 5.0
    kill_switch: bool = False

    # Budget caps (monthly)
    cap_total_usd: float = 300.0
    cap_api_usd: float = 200.0
    cap_seo_usd: float = 100.0
    cap_ads_usd: float = 150.0

    # Budget caps (daily)
    daily_cap_api_usd: float = 50.0
    daily_cap_seo_usd: float = 50.0
    daily_cap_ads_usd: float = 50.0

    # Policy knobs
    policy_mode: str = "aggressive"
    overrun_max_usd: float = 50.0
    roi_min: float = 2.0
    risk_mode: str = "cashflow"
    confidence_min: float = 0.85

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
