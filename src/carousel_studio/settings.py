"""Application settings loaded from the environment."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import EXPORT_EXPIRY_DAYS, MAX_CONCURRENT_IMAGES, PROVIDER_TIMEOUT_SECONDS

# Load .env file
load_dotenv()

PROJECT_ROOT = Path(__file__).parent.parent.parent


class Settings(BaseSettings):
    """Runtime settings, overridable with CAROUSEL_* environment variables."""

    model_config = SettingsConfigDict(env_prefix="CAROUSEL_", extra="ignore")

    data_dir: Path = Path("data")
    user_id: str = "local-user"
    provider_config_path: Path | None = None
    provider_timeout_seconds: float = Field(default=PROVIDER_TIMEOUT_SECONDS, gt=0)
    max_concurrent_images: int = Field(default=MAX_CONCURRENT_IMAGES, ge=1)
    export_dir: Path = Path("exports")
    export_expiry_days: int = Field(default=EXPORT_EXPIRY_DAYS, ge=1)
    log_dir: Path = PROJECT_ROOT / "logs"

    @property
    def generations_dir(self) -> Path:
        return self.data_dir / "generations"

    @property
    def projects_dir(self) -> Path:
        return self.data_dir / "projects"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the process-wide settings instance."""
    return Settings()
