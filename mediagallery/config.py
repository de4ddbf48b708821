from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

MIB = 1024 * 1024


class Settings(BaseSettings):
    APP_NAME: str = "Media Gallery"
    VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"

    # Storage
    DATA_DIR: Path = Path("data")
    CATALOG_FILE: Optional[Path] = None
    UPLOAD_DIR: Optional[Path] = None
    PUBLIC_CONTENT_PATH: str = "/uploads"

    # Upload limits
    MAX_VIDEO_BYTES: int = 100 * MIB
    MAX_IMAGE_BYTES: int = 20 * MIB

    model_config = SettingsConfigDict(env_prefix="GALLERY_", env_file=".env", extra="ignore")

    @property
    def catalog_path(self) -> Path:
        return self.CATALOG_FILE or self.DATA_DIR / "data.json"

    @property
    def upload_path(self) -> Path:
        return self.UPLOAD_DIR or self.DATA_DIR / "uploads"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
