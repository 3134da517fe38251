"""Error hierarchy and error response models."""

from pydantic import BaseModel, Field


class ScreencasterError(Exception):
    """Base error for all Screencaster errors."""

    def __init__(self, message: str, component: str = "", details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.component = component
        self.details = details or {}


class CaptureError(ScreencasterError):
    """Capture start/stop failures reported by the capture supervisor."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="capture", details=details)


class MetadataError(ScreencasterError):
    """Output folder or recording metadata could not be written or read."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="metadata", details=details)


class PipelineError(ScreencasterError):
    """A post-processing step failed."""

    def __init__(self, message: str, step_index: int = -1, details: dict | None = None):
        super().__init__(message, component="pipeline", details=details)
        self.step_index = step_index


class StateError(ScreencasterError):
    """ProcessingState was driven out of contract."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="state", details=details)


class ErrorResponse(BaseModel):
    """Render-ready description of an error shown to the user."""

    error_type: str = Field(..., description="Error category")
    component: str = Field(default="", description="Component that raised the error")
    message: str = Field(..., description="Human-readable error message")
    details: dict = Field(default_factory=dict)
    actionable_guidance: str = Field(default="", description="Suggested user action")
    retry_possible: bool = Field(default=False)

    @classmethod
    def from_exception(
        cls, exc: BaseException, guidance: str = "", retry: bool = False
    ) -> "ErrorResponse":
        if isinstance(exc, ScreencasterError):
            return cls(
                error_type=type(exc).__name__,
                component=exc.component,
                message=exc.message,
                details=exc.details,
                actionable_guidance=guidance,
                retry_possible=retry,
            )
        return cls(
            error_type=type(exc).__name__,
            message=str(exc),
            actionable_guidance=guidance,
            retry_possible=retry,
        )
