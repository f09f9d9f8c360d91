from pathlib import Path
from typing import List

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PKG_DIR = Path(__file__).resolve().parent
ENV_PATH = PKG_DIR / ".env"


class Settings(BaseSettings):
    # App
    app_env: str = "dev"
    app_timezone: str = "America/Sao_Paulo"
    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")

    # Store: "memory" serves the bundled demo events, "supabase" the hosted tables
    store_backend: str = Field("memory", validation_alias="STORE_BACKEND")
    supabase_url: str | None = Field(default=None, validation_alias="SUPABASE_URL")
    supabase_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "SUPABASE_KEY", "SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_ANON_KEY"
        ),
    )
    events_table: str = "events"
    favorites_table: str = "favorites"

    # UI -> API
    api_base: str = Field(
        "http://127.0.0.1:8000", validation_alias="EVENT_FINDER_API"
    )
    http_timeout_seconds: float = Field(
        20.0, validation_alias="HTTP_TIMEOUT_SECONDS"
    )
    # JSON list, e.g. CORS_ORIGINS='["http://localhost:8501"]'
    cors_origins: List[str] = Field(["*"], validation_alias="CORS_ORIGINS")

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


settings = Settings()
