from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Environment
    environment: str = "development"  # "development" or "production"

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/auralog.db"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    debug: bool = False

    # Scheduler (interval must divide 60, it doubles as the rounding grid)
    scheduler_interval_minutes: int = 15
    dispatch_max_workers: int = 8

    # Notifications
    notification_enabled: bool = True
    fcm_project_id: str = ""
    fcm_service_account_file: str = ""
    fcm_service_account_json: str = ""

    # Premium quotes
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    openai_temperature: float = 0.95
    openai_max_tokens: int = 80
    openai_timeout: float = 10.0

    # CORS (comma-separated origins, empty means localhost only)
    cors_origins: str = ""

    # Admin
    admin_api_key: str = ""

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def sync_database_url(self) -> str:
        return self.database_url.replace("+aiosqlite", "")


@lru_cache
def get_settings() -> Settings:
    return Settings()
