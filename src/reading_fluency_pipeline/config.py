"""
Configuration management for the reading fluency pipeline.
"""

from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Project paths
    output_dir: Path = Field(default_factory=lambda: Path("output"))
    cache_dir: Path = Field(default_factory=lambda: Path("cache"))
    logs_dir: Path = Field(default_factory=lambda: Path("logs"))

    # Highlight video canvas
    video_width: int = Field(default=1280, ge=320, le=3840)
    video_height: int = Field(default=720, ge=240, le=2160)
    video_padding: int = Field(default=60, ge=0)
    line_height: int = Field(default=50, ge=1)
    font_size: int = Field(default=36, ge=6, le=200)
    font_path: Optional[str] = Field(default=None, description="TrueType font for passage words")
    bold_font_path: Optional[str] = Field(default=None, description="TrueType font for the header")

    # Frame rendering
    render_workers: int = Field(default=4, ge=1, le=32, description="Threads rendering keyframes")

    # Encoding settings
    ffmpeg_binary: str = Field(default="ffmpeg", description="ffmpeg executable")
    ffmpeg_log_level: str = Field(default="error", description="ffmpeg -loglevel value")
    video_codec: str = Field(default="libx264", description="Video codec")
    encode_preset: str = Field(default="veryfast", description="x264 preset")
    encode_crf: int = Field(default=23, ge=0, le=51, description="Constant rate factor")
    audio_codec: str = Field(default="aac", description="Audio codec")
    audio_bitrate: str = Field(default="128k", description="Audio bitrate")

    # Logging settings
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log format: json or text")


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings


def create_directories():
    """Create necessary directories if they don't exist."""
    directories = [
        settings.cache_dir,
        settings.logs_dir,
        settings.cache_dir / "video_work",
    ]

    for directory in directories:
        directory.mkdir(parents=True, exist_ok=True)


# Create directories on import
create_directories()
