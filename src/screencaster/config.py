"""Application configuration using Pydantic BaseSettings."""

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Screencaster configuration loaded from environment variables."""

    model_config = {"env_prefix": "SCREENCASTER_", "env_file": ".env", "extra": "ignore"}

    # Directories
    videos_dir: Path = Path.home() / "Videos" / "Screencasts"
    metadata_filename: str = "recording.json"

    # Countdown
    countdown_seconds: int = 5
    countdown_tick_seconds: float = 1.0
    cues_enabled: bool = True
    cue_duration_seconds: float = 0.1

    # Processing
    completion_hold_seconds: float = 1.5
    progress_queue_size: int = 100

    # External recording detection
    sentinel_poll_seconds: float = 1.0
    external_capture_process_names: list[str] = ["wl-screenrec"]


def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
