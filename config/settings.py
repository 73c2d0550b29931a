"""
MOT Dataset Fixer - Centralized Configuration

Uses Pydantic Settings to load config from .env file with validation.
"""

from pydantic_settings import BaseSettings
from pydantic import Field


DEFAULT_TRACK_COLORS = [
    "#EF4444",  # red
    "#3B82F6",  # blue
    "#10B981",  # green
    "#F59E0B",  # amber
    "#6366F1",  # indigo
    "#EC4899",  # pink
    "#8B5CF6",  # violet
    "#D946EF",  # fuchsia
    "#06B6D4",  # cyan
    "#F97316",  # orange
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # --- Sequence ---
    total_frames: int = Field(
        default=30, ge=1,
        description="Number of frames in the sequence. Frames are indexed 0..total_frames-1"
    )
    frame_width: int = Field(
        default=800, ge=1,
        description="Reference frame width in pixels. Boxes are stored as percentages "
                    "and only converted to pixels for MOT Challenge export"
    )
    frame_height: int = Field(default=600, ge=1)

    # --- Track identity ---
    track_id_prefix: str = Field(default="T", min_length=1)
    track_colors: list[str] = Field(
        default_factory=lambda: list(DEFAULT_TRACK_COLORS),
        min_length=1,
        description="Palette cycled through for newly created tracks"
    )

    # --- Dataset document ---
    dataset_version: str = Field(default="1.0")

    # --- Label editing ---
    suggestion_limit: int = Field(
        default=5, ge=1,
        description="Maximum number of label suggestions returned while typing"
    )

    # --- Logging ---
    log_level: str = Field(default="INFO")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


# Singleton instance
settings = Settings()
