"""Recording metadata descriptor persisted alongside each session's files."""

import os
import platform
import re
import socket
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field

FOLDER_TITLE_MAX_LENGTH = 50


class RecordingStatus(StrEnum):
    """Lifecycle status stored in recording.json."""

    RECORDING = "recording"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


def sanitize_for_filename(text: str) -> str:
    """Lowercase, hyphenate and strip a title down to [a-z0-9-_]."""
    text = text.lower().replace(" ", "-")
    text = re.sub(r"[^a-z0-9\-_]", "", text)
    text = re.sub(r"-+", "-", text)
    return text.strip("-")[:FOLDER_TITLE_MAX_LENGTH]


class RecordingMetadata(BaseModel):
    """User-provided description of a recording."""

    number: int = Field(default=1, ge=0)
    title: str = ""
    description: str = ""
    topic: str = ""
    presenter: str = ""
    folder_name: str = ""

    def generate_folder_name(self) -> str:
        """Set and return the folder name, formatted NNN-sanitized-title."""
        self.folder_name = f"{self.number:03d}-{sanitize_for_filename(self.title) or 'recording'}"
        return self.folder_name


class EnvironmentInfo(BaseModel):
    os: str = ""
    arch: str = ""
    hostname: str = ""
    desktop_environment: str = ""
    monitor: str = ""
    monitor_resolution: str = ""

    @classmethod
    def detect(cls, monitor: str = "", resolution: str = "") -> "EnvironmentInfo":
        return cls(
            os=platform.system().lower(),
            arch=platform.machine(),
            hostname=socket.gethostname(),
            desktop_environment=os.environ.get("XDG_CURRENT_DESKTOP", ""),
            monitor=monitor,
            monitor_resolution=resolution,
        )


class FileInfo(BaseModel):
    folder_path: str = ""
    video_file: str = ""
    audio_file: str = ""
    webcam_file: str = ""
    merged_file: str = ""
    vertical_file: str = ""


class RecordingSettings(BaseModel):
    screen_enabled: bool = True
    audio_enabled: bool = True
    webcam_enabled: bool = True
    vertical_enabled: bool = False
    logos_enabled: bool = False
    left_logo: str = ""
    right_logo: str = ""
    bottom_logo: str = ""
    title_color: str = ""
    gif_loop_mode: str = ""


class ProcessingInfo(BaseModel):
    processed_at: datetime | None = None
    normalize_applied: bool = False
    vertical_created: bool = False
    errors: list[str] = Field(default_factory=list)


class RecordingInfo(BaseModel):
    """Everything known about one recording."""

    metadata: RecordingMetadata = Field(default_factory=RecordingMetadata)
    status: RecordingStatus = RecordingStatus.RECORDING
    start_time: datetime = Field(default_factory=lambda: datetime.now(UTC))
    environment: EnvironmentInfo = Field(default_factory=EnvironmentInfo)
    files: FileInfo = Field(default_factory=FileInfo)
    settings: RecordingSettings = Field(default_factory=RecordingSettings)
    processing: ProcessingInfo = Field(default_factory=ProcessingInfo)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def set_status(self, status: RecordingStatus) -> None:
        self.status = status
        self.updated_at = datetime.now(UTC)
