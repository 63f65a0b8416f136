"""Application configuration via pydantic-settings.

Reads from .env file or environment variables. All settings are validated
at startup — if a setting has the wrong type, the app fails fast with a
clear error message.

Usage:
    from agent_autopilot.config import get_settings
    settings = get_settings()
    print(settings.autopilot_cycle_interval_seconds)
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for the Agent Autopilot service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Application ---
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = True
    app_log_level: str = "DEBUG"
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    # --- Database (bid ledger + oversight queue) ---
    database_url: str = "sqlite+aiosqlite:///./data/autopilot.db"
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_pool_timeout: int = 30
    db_echo_sql: bool = False
    db_create_tables: bool = True

    # --- Redis (webhook idempotency) ---
    redis_enabled: bool = True
    redis_url: str = "redis://localhost:6379/0"
    redis_idempotency_ttl_seconds: int = 86400  # 24 hours

    # --- Marketplace ---
    marketplace_base_url: str = "https://www.openwork.bot/api"
    marketplace_tasks_path: str = "/jobs/match"
    marketplace_timeout_seconds: float = 30.0
    marketplace_api_key: str = ""

    # --- Agent credentials (one bearer key per role) ---
    backend_api_key: str = ""
    contract_api_key: str = ""
    frontend_api_key: str = ""
    research_api_key: str = ""
    agent_profiles_file: str = ""

    # --- Engine ---
    autopilot_autostart: bool = True
    autopilot_cycle_interval_seconds: float = 300.0  # 5 minutes
    autopilot_max_bids_per_cycle: int = 3
    autopilot_min_match_score: float = 5.0
    autopilot_submit_delay_seconds: float = 0.5
    # When False, tasks whose only bids failed are never retried.
    autopilot_retry_failed: bool = True
    activity_log_size: int = 50

    # --- Matching ---
    match_keyword_weight: float = 12.0
    match_score_cap: float = 100.0
    match_default_role: str = "research"

    # --- Submission text ---
    submission_seed: int | None = None
    submission_signature: str = "Autopilot Squadron"

    # --- Ledger ---
    ledger_max_records: int = 500
    ledger_recent_limit: int = 50

    # --- Treasury ---
    treasury_wallet_address: str = ""
    treasury_rpc_url: str = "https://mainnet.base.org"
    treasury_token_address: str = "0x299c30DD5974BF4D5bFE42C340CA40462816AB07"
    treasury_token_decimals: int = 18
    treasury_oversight_threshold: float = 0.05
    oversight_expiration_minutes: int = 60

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def agent_keys(self) -> dict[str, str]:
        """Map role keys to their marketplace credentials."""
        return {
            "backend": self.backend_api_key,
            "contract": self.contract_api_key,
            "frontend": self.frontend_api_key,
            "research": self.research_api_key,
        }

    @property
    def sync_database_url(self) -> str:
        """Synchronous database URL for Alembic migrations."""
        return self.database_url.replace("+asyncpg", "+psycopg2").replace("+aiosqlite", "")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton of the application settings."""
    return Settings()
