from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "stockledger"
    environment: str = "development"
    api_v1_prefix: str = "/api/v1"

    secret_key: str = "change-this-secret-key"
    access_token_expire_minutes: int = 480

    database_url: str = "postgresql+psycopg2://stockledger:stockledger@db:5432/stockledger"
    sqlite_busy_timeout_seconds: float = 30
    # 0 leaves the server default in place
    lock_timeout_ms: int = 0
    cors_origins: str = "http://localhost:3000"

    log_level: str = "INFO"

    movements_default_limit: int = 50
    movements_max_limit: int = 200

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
