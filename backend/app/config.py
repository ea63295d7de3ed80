"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded in production)
    - get_settings() is cached (lru_cache) — single instance per process
    - Economy values are non-negative and reach the state machine only through EconomyRules

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

from app.core.economy_rules import EconomyRules


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://pinkmentor:pinkmentor@db:5432/pinkmentor"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres provides postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Identity
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    access_token_ttl_minutes: int = 60 * 24 * 7

    # Economy
    beginner_session_reward: int = Field(5, ge=0)
    cancel_reputation_penalty: int = Field(5, ge=0)
    initial_beginner_credits: int = Field(3, ge=0)
    beginner_trial_days: int = Field(30, ge=0)
    upgrade_sessions_learned: int = Field(3, ge=1)

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    def economy_rules(self) -> EconomyRules:
        return EconomyRules(
            beginner_session_reward=self.beginner_session_reward,
            cancel_reputation_penalty=self.cancel_reputation_penalty,
            initial_beginner_credits=self.initial_beginner_credits,
            beginner_trial_days=self.beginner_trial_days,
            upgrade_sessions_learned=self.upgrade_sessions_learned,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
