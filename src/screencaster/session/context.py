"""Display context shared between the session controller and renderers."""

from pydantic import BaseModel, Field

from screencaster.models.errors import ErrorResponse
from screencaster.models.session import SessionState

STATUS_TEXT: dict[SessionState, str] = {
    SessionState.IDLE: "Ready",
    SessionState.COUNTDOWN: "Starting...",
    SessionState.RECORDING: "Recording",
    SessionState.PROCESSING: "Processing",
}


class DisplayContext(BaseModel):
    """Header/status record handed explicitly to the presentation layer."""

    status: str = STATUS_TEXT[SessionState.IDLE]
    is_recording: bool = False
    countdown: int | None = None
    external_recording: bool = False
    external_pids: list[int] = Field(default_factory=list)
    error: ErrorResponse | None = None

    def show_state(self, state: SessionState) -> None:
        self.status = STATUS_TEXT[state]
        self.is_recording = state == SessionState.RECORDING
        if state != SessionState.COUNTDOWN:
            self.countdown = None
