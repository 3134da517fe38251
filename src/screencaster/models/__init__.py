"""Data models for Screencaster."""

from screencaster.models.errors import (
    CaptureError,
    ErrorResponse,
    MetadataError,
    PipelineError,
    ScreencasterError,
    StateError,
)
from screencaster.models.events import EventKind, ProgressEvent
from screencaster.models.pipeline import (
    STEP_NAMES,
    PipelineOutcome,
    PipelineStepIndex,
    ProcessingState,
    ProcessingStep,
    StepStatus,
)
from screencaster.models.recording import RecordingInfo, RecordingMetadata, RecordingStatus
from screencaster.models.session import (
    Capabilities,
    CaptureOptions,
    CaptureStatus,
    LogoSelection,
    SessionState,
)

__all__ = [
    "STEP_NAMES",
    "Capabilities",
    "CaptureError",
    "CaptureOptions",
    "CaptureStatus",
    "ErrorResponse",
    "EventKind",
    "LogoSelection",
    "MetadataError",
    "PipelineError",
    "PipelineOutcome",
    "PipelineStepIndex",
    "ProcessingState",
    "ProcessingStep",
    "ProgressEvent",
    "RecordingInfo",
    "RecordingMetadata",
    "RecordingStatus",
    "ScreencasterError",
    "SessionState",
    "StateError",
    "StepStatus",
]
