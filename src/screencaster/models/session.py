"""Recording session and capture option models."""

from enum import StrEnum
from pathlib import Path
from typing import Literal, NamedTuple

from pydantic import BaseModel, Field

from screencaster.models.recording import RecordingInfo


class SessionState(StrEnum):
    """States of a recording session."""

    IDLE = "idle"
    COUNTDOWN = "countdown"
    RECORDING = "recording"
    PROCESSING = "processing"


class Capabilities(NamedTuple):
    """What was captured, as used to decide which steps to skip."""

    has_audio: bool
    has_screen: bool
    has_webcam: bool
    create_vertical: bool


class LogoSelection(BaseModel):
    """Logos overlaid on the processed video."""

    left_logo: str = ""
    right_logo: str = ""
    bottom_logo: str = ""
    title_color: str = ""
    gif_loop_mode: Literal["continuous", "once", "none"] = "continuous"

    @property
    def any_selected(self) -> bool:
        return bool(self.left_logo or self.right_logo or self.bottom_logo)


class CaptureOptions(BaseModel):
    """Options handed to the capture supervisor when a recording starts."""

    output_dir: Path | None = None
    monitor: str = ""
    audio_enabled: bool = True
    screen_enabled: bool = True
    webcam_enabled: bool = True
    create_vertical: bool = False
    logos: LogoSelection = Field(default_factory=LogoSelection)
    recording_info: RecordingInfo | None = None

    @property
    def vertical_enabled(self) -> bool:
        """Vertical output needs both the screen and the webcam stream."""
        return self.create_vertical and self.screen_enabled and self.webcam_enabled

    def capabilities(self) -> Capabilities:
        return Capabilities(
            has_audio=self.audio_enabled,
            has_screen=self.screen_enabled,
            has_webcam=self.webcam_enabled,
            create_vertical=self.vertical_enabled,
        )


class CaptureStatus(BaseModel):
    """Snapshot of the capture supervisor's state."""

    is_recording: bool = False
    is_paused: bool = False
    monitor: str = ""
    video_file: str = ""
    audio_file: str = ""
    webcam_file: str = ""

    @property
    def produced_files(self) -> list[str]:
        return [f for f in (self.video_file, self.audio_file, self.webcam_file) if f]
