"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    api_prefix: str = "/api"
    project_name: str = "Workplace DNA API"
    allow_origins: list[str] = ["*"]
    database_url: str = "sqlite:///./workplace_dna.db"
    log_level: str = "INFO"
    heartbeat_interval_seconds: float = 30.0
    health_report_interval_seconds: float = 30.0
    client_queue_size: int = 256


settings = Settings()
