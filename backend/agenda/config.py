# backend/agenda/config.py

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]  # repo root


class Settings(BaseSettings):
    database_url: str = "sqlite:///./agenda.db"
    redis_url: str = "redis://localhost:6379/0"

    # Organization defaults (used when no organization_settings row exists)
    default_utc_offset_minutes: int = -180  # America/Sao_Paulo, no DST
    default_slot_minutes: int = 30
    default_duration_minutes: int = 30

    completion_checker_enabled: bool = True
    completion_check_interval: int = 60  # seconds

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            # relative sqlite path → absolute, anchored at repo root
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            return f"sqlite:///{absolute_path}"
        return url

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


settings = Settings()
