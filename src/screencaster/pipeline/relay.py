"""Progress relay: folds worker events into the processing state."""

import logging
from collections.abc import Callable

from screencaster.models.errors import PipelineError
from screencaster.models.events import EventKind, ProgressEvent
from screencaster.models.pipeline import PipelineOutcome, ProcessingState, StepStatus
from screencaster.pipeline.channel import EventChannel

logger = logging.getLogger(__name__)

StateListener = Callable[[ProcessingState], None]
StepListener = Callable[[int], None]


class ProgressRelay:
    """Single consumer of a processing run's event channel.

    While the relay runs it is the only writer of the ProcessingState it was
    given. Events are applied one at a time, in arrival order, and every
    applied event is followed by a notification carrying a snapshot of the
    state. Closing the channel ends the run and yields a PipelineOutcome.
    """

    def __init__(
        self,
        state: ProcessingState,
        channel: EventChannel,
        on_change: StateListener | None = None,
        on_step_completed: StepListener | None = None,
    ):
        self._state = state
        self.channel = channel
        self.on_change = on_change
        self.on_step_completed = on_step_completed

    def snapshot(self) -> ProcessingState:
        return self._state.model_copy(deep=True)

    async def run(self) -> PipelineOutcome:
        async for event in self.channel:
            changed = self.apply(event)
            if changed and self.on_change:
                self.on_change(self.snapshot())
            if changed and event.kind == EventKind.COMPLETED and self.on_step_completed:
                self.on_step_completed(event.step_index)
        return self._finish()

    def apply(self, event: ProgressEvent) -> bool:
        """Apply one event. Returns True if the state changed."""
        state = self._state
        if state.is_failed:
            logger.warning(
                "Ignoring %s event for step %d after pipeline failure",
                event.kind,
                event.step_index,
            )
            return False

        logger.debug("Relay event: step=%d kind=%s", event.step_index, event.kind)

        if event.kind == EventKind.PERCENT:
            state.set_progress(event.step_index, event.percent)
            return True

        if event.kind == EventKind.FAILED:
            logger.error("Processing step %d failed: %s", event.step_index, event.error)
            state.fail(PipelineError(event.error, step_index=event.step_index))
            return True

        if event.kind == EventKind.STARTED:
            if state.start_time is None:
                state.start()
                return True
            # The driver already marks the next eligible step running on advance.
            return False

        # Completed or skipped: only the running step can end.
        current = state.current
        if (
            current is None
            or event.step_index != state.current_step
            or current.status != StepStatus.RUNNING
        ):
            logger.debug(
                "Ignoring %s for step %d (current step %d)",
                event.kind,
                event.step_index,
                state.current_step,
            )
            return False
        state.advance()
        return True

    def _finish(self) -> PipelineOutcome:
        state = self._state
        if state.is_failed:
            failed = next(
                (i for i, s in enumerate(state.steps) if s.status == StepStatus.FAILED), None
            )
            outcome = PipelineOutcome(success=False, error=state.error, failed_step=failed)
        else:
            state.complete()
            outcome = PipelineOutcome(success=True)
        if self.on_change:
            self.on_change(self.snapshot())
        logger.info("Processing finished: success=%s", outcome.success)
        return outcome
