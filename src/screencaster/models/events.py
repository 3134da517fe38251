"""Progress events emitted by the background processing worker."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class EventKind(StrEnum):
    """Kinds of progress event a worker can emit for a step."""

    STARTED = "started"
    PERCENT = "percent"
    SKIPPED = "skipped"
    FAILED = "failed"
    COMPLETED = "completed"

    @property
    def is_terminal(self) -> bool:
        return self in (EventKind.SKIPPED, EventKind.FAILED, EventKind.COMPLETED)


class ProgressEvent(BaseModel):
    """Immutable message describing a transition or percent update for one step."""

    model_config = ConfigDict(frozen=True)

    step_index: int = Field(..., ge=0)
    kind: EventKind
    percent: float | None = Field(default=None, ge=0, le=100)
    error: str | None = None

    @model_validator(mode="after")
    def _check_payload(self) -> "ProgressEvent":
        if self.kind == EventKind.PERCENT and self.percent is None:
            raise ValueError("percent events require a percent value")
        if self.kind == EventKind.FAILED and not self.error:
            raise ValueError("failed events require an error message")
        return self

    @classmethod
    def started(cls, step_index: int) -> "ProgressEvent":
        return cls(step_index=step_index, kind=EventKind.STARTED)

    @classmethod
    def progress(cls, step_index: int, percent: float) -> "ProgressEvent":
        return cls(
            step_index=step_index, kind=EventKind.PERCENT, percent=max(0.0, min(100.0, percent))
        )

    @classmethod
    def skipped(cls, step_index: int) -> "ProgressEvent":
        return cls(step_index=step_index, kind=EventKind.SKIPPED)

    @classmethod
    def failed(cls, step_index: int, error: BaseException | str) -> "ProgressEvent":
        return cls(step_index=step_index, kind=EventKind.FAILED, error=str(error) or repr(error))

    @classmethod
    def completed(cls, step_index: int) -> "ProgressEvent":
        return cls(step_index=step_index, kind=EventKind.COMPLETED)
