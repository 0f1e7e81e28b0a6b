from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration, read from CRONHOOKS_* env vars or .env."""

    model_config = SettingsConfigDict(
        env_prefix="CRONHOOKS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: str = "development"
    log_level: str = "INFO"
    log_file: str | None = None

    database_url: str = "sqlite:///./cronhooks.db"
    redis_url: str = "redis://localhost:6379/0"
    db_wait_seconds: int = 60

    # trusted webhook providers; empty list accepts any URL
    webhook_url_prefixes: list[str] = Field(
        default_factory=lambda: ["https://discord.com/api/webhooks/"]
    )

    recent_executions_limit: int = Field(default=5, ge=0)
    trend_days: int = Field(default=7, ge=1)

    executor_queue: str = "webhooks"
    executor_task_name: str = "executor.tasks.run_webhook_task"
    # queue the executor publishes execution outcomes to
    results_queue: str = "executions"

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in ("development", "dev", "local")


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()

DATABASE_URL = settings.database_url
REDIS_URL = settings.redis_url
