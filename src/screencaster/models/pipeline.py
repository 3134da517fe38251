"""Post-processing step ledger.

The pipeline has a fixed set of steps, defined once and never reordered.
Step status only moves forward:

    pending -> running | skipped
    running -> complete | failed

and a step in a terminal status is never touched again. At most one step is
running at any instant.
"""

from datetime import UTC, datetime, timedelta
from enum import IntEnum, StrEnum

from pydantic import BaseModel, Field

from screencaster.models.errors import ErrorResponse, StateError

INDETERMINATE = -1.0


class StepStatus(StrEnum):
    """Status of a single processing step."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETE = "complete"
    FAILED = "failed"
    SKIPPED = "skipped"

    @property
    def is_terminal(self) -> bool:
        return self in (StepStatus.COMPLETE, StepStatus.FAILED, StepStatus.SKIPPED)


class PipelineStepIndex(IntEnum):
    """Positions of the processing steps, in execution order."""

    STOPPING = 0
    ANALYZING = 1
    NORMALIZING = 2
    MERGING = 3
    VERTICAL = 4


STEP_NAMES: dict[PipelineStepIndex, str] = {
    PipelineStepIndex.STOPPING: "Stopping recorders",
    PipelineStepIndex.ANALYZING: "Analyzing audio levels",
    PipelineStepIndex.NORMALIZING: "Normalizing audio",
    PipelineStepIndex.MERGING: "Merging video & audio",
    PipelineStepIndex.VERTICAL: "Creating vertical video",
}


class ProcessingStep(BaseModel):
    """One named unit of the post-processing pipeline."""

    name: str = Field(..., min_length=1)
    status: StepStatus = StepStatus.PENDING
    start_time: datetime | None = None
    end_time: datetime | None = None
    progress: float = Field(default=INDETERMINATE, ge=-1, le=100)

    @property
    def duration(self) -> timedelta | None:
        if self.start_time is None or self.end_time is None:
            return None
        return self.end_time - self.start_time


def _default_steps() -> list[ProcessingStep]:
    return [ProcessingStep(name=STEP_NAMES[index]) for index in PipelineStepIndex]


class ProcessingState(BaseModel):
    """Ordered step ledger for one processing run."""

    steps: list[ProcessingStep] = Field(default_factory=_default_steps)
    current_step: int = -1
    is_processing: bool = False
    start_time: datetime | None = None
    end_time: datetime | None = None
    error: ErrorResponse | None = None
    skips_configured: bool = False

    # --- queries ---

    @property
    def current(self) -> ProcessingStep | None:
        if 0 <= self.current_step < len(self.steps):
            return self.steps[self.current_step]
        return None

    @property
    def is_failed(self) -> bool:
        return self.error is not None

    @property
    def is_finished(self) -> bool:
        """True once the run has stopped, successfully or not."""
        return self.start_time is not None and not self.is_processing

    def running_steps(self) -> list[int]:
        return [i for i, step in enumerate(self.steps) if step.status == StepStatus.RUNNING]

    def skipped_steps(self) -> set[int]:
        return {i for i, step in enumerate(self.steps) if step.status == StepStatus.SKIPPED}

    def elapsed(self, now: datetime | None = None) -> timedelta:
        """Time since processing started, frozen once the run has ended."""
        if self.start_time is None:
            return timedelta(0)
        if not self.is_processing and self.end_time is not None:
            return self.end_time - self.start_time
        return (now or datetime.now(UTC)) - self.start_time

    # --- transitions ---

    def configure_skips(
        self,
        has_audio: bool,
        has_screen: bool,
        has_webcam: bool,
        create_vertical: bool,
        skip_stopping: bool = False,
    ) -> None:
        """Mark the steps that do not apply to this recording as skipped.

        Must be called once, before start().
        """
        if self.skips_configured:
            raise StateError("Processing steps were already configured")
        if self.start_time is not None:
            raise StateError("Processing steps cannot be configured after start")

        if skip_stopping:
            self._skip(PipelineStepIndex.STOPPING)
        if not has_audio:
            self._skip(PipelineStepIndex.ANALYZING)
            self._skip(PipelineStepIndex.NORMALIZING)
        if not has_screen and not has_webcam:
            self._skip(PipelineStepIndex.MERGING)
        if not create_vertical:
            self._skip(PipelineStepIndex.VERTICAL)
        self.skips_configured = True

    def start(self) -> None:
        """Begin processing at the first step that is not skipped."""
        now = datetime.now(UTC)
        self.is_processing = True
        self.start_time = now
        self.current_step = 0
        self._run_next_eligible(now)

    def advance(self) -> None:
        """Complete the current step and run the next non-skipped one."""
        now = datetime.now(UTC)
        self._finish_current(StepStatus.COMPLETE, now)
        self.current_step = min(self.current_step + 1, len(self.steps))
        self._run_next_eligible(now)

    def fail(self, err: BaseException | str) -> None:
        """Fail the current step and record the error. Does not advance."""
        now = datetime.now(UTC)
        self._finish_current(StepStatus.FAILED, now)
        self.error = (
            ErrorResponse(error_type="Error", message=err)
            if isinstance(err, str)
            else ErrorResponse.from_exception(err)
        )
        self.end_time = now
        self.is_processing = False

    def complete(self) -> None:
        """Complete the current step and end processing."""
        now = datetime.now(UTC)
        self._finish_current(StepStatus.COMPLETE, now)
        self.end_time = now
        self.is_processing = False

    def reset(self) -> None:
        """Restore the freshly constructed, all-pending configuration."""
        self.steps = _default_steps()
        self.current_step = -1
        self.is_processing = False
        self.start_time = None
        self.end_time = None
        self.error = None
        self.skips_configured = False

    def set_progress(self, index: int, percent: float) -> None:
        """Update a step's percentage without touching its status."""
        if 0 <= index < len(self.steps):
            self.steps[index].progress = max(INDETERMINATE, min(100.0, percent))

    # --- internals ---

    def _skip(self, index: int) -> None:
        step = self.steps[index]
        if step.status == StepStatus.PENDING:
            step.status = StepStatus.SKIPPED

    def _run_next_eligible(self, now: datetime) -> None:
        while (
            self.current_step < len(self.steps)
            and self.steps[self.current_step].status == StepStatus.SKIPPED
        ):
            self.current_step += 1

        step = self.current
        if step is not None and step.status == StepStatus.PENDING:
            step.status = StepStatus.RUNNING
            step.start_time = now
            step.progress = INDETERMINATE

    def _finish_current(self, status: StepStatus, now: datetime) -> None:
        step = self.current
        if step is None or step.status != StepStatus.RUNNING:
            return
        step.status = status
        step.end_time = now
        if status == StepStatus.COMPLETE:
            step.progress = 100.0


class PipelineOutcome(BaseModel):
    """Terminal result of a processing run, delivered once the event stream closes."""

    success: bool
    error: ErrorResponse | None = None
    failed_step: int | None = None
