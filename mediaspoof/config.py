"""Application configuration and settings."""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables or YAML."""

    model_config = SettingsConfigDict(
        env_prefix="MEDIASPOOF_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # External tools
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"

    # Processing
    max_attempts: int = Field(default=3, ge=1)  # 1 initial attempt + 2 retries
    retry_delay: float = 0.5
    inter_file_delay: float = 0.1
    probe_default_duration: float = 90.0

    # Output
    output_folder_name: str = "MediaSpoofer_Output"
    batch_subdirectories: bool = True

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None
    log_max_size_mb: int = 10
    log_backup_count: int = 3

    @classmethod
    def from_yaml(cls, path: str) -> "Settings":
        """Load settings from a YAML file. Environment variables still apply
        to keys the file leaves out."""
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        return cls(**data)


def load_settings(path: Optional[str] = None) -> Settings:
    """Load settings from the first config file found, falling back to defaults."""
    search_paths = [
        path,
        os.environ.get("MEDIASPOOF_CONFIG"),
        str(Path.home() / ".mediaspoof" / "config.yaml"),
    ]
    for p in search_paths:
        if p and os.path.isfile(p):
            return Settings.from_yaml(p)
    return Settings()


# Global settings instance
settings = Settings()
