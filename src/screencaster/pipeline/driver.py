"""Pipeline driver: sequences a processing run against the capture supervisor."""

import asyncio
import logging

from screencaster.capture.supervisor import CaptureSupervisor
from screencaster.config import get_settings
from screencaster.models.errors import CaptureError
from screencaster.models.events import ProgressEvent
from screencaster.models.pipeline import PipelineOutcome, PipelineStepIndex, ProcessingState
from screencaster.pipeline.channel import EventChannel
from screencaster.pipeline.relay import ProgressRelay, StateListener

logger = logging.getLogger(__name__)


class _TrackingSink:
    """Event sink handed to the supervisor; remembers the last step it reported."""

    def __init__(self, channel: EventChannel):
        self.channel = channel
        self.last_step = int(PipelineStepIndex.ANALYZING)

    def __call__(self, event: ProgressEvent) -> None:
        self.last_step = event.step_index
        self.channel.put_threadsafe(event)


class PipelineDriver:
    """Runs the post-processing pipeline for one session.

    Strict ordering: stop capture → (bootstrap) → supervisor pipeline.
    The supervisor's pipeline is only launched once the relay has applied
    the successful completion of the stopping step.
    """

    def __init__(self, supervisor: CaptureSupervisor, queue_size: int | None = None):
        self.supervisor = supervisor
        self.queue_size = queue_size or get_settings().progress_queue_size
        self._worker: asyncio.Future | None = None

    async def run(
        self,
        state: ProcessingState,
        stop_capture: bool = True,
        on_change: StateListener | None = None,
    ) -> PipelineOutcome:
        """Drive ``state`` to completion or failure.

        ``state`` must already be configured and started. With
        ``stop_capture=False`` the stopping step is expected to be skipped and
        the supervisor pipeline starts immediately (reprocessing).
        """
        channel = EventChannel(self.queue_size)
        self._worker = None

        def on_step_completed(index: int) -> None:
            if index == PipelineStepIndex.STOPPING:
                self._launch_worker(channel)

        relay = ProgressRelay(
            state, channel, on_change=on_change, on_step_completed=on_step_completed
        )
        relay_task = asyncio.create_task(relay.run())

        if stop_capture:
            await self._stop_capture(channel)
        else:
            self._launch_worker(channel)

        outcome = await relay_task
        if self._worker is not None:
            await self._worker
        return outcome

    async def _stop_capture(self, channel: EventChannel) -> None:
        try:
            await asyncio.to_thread(self.supervisor.stop)
        except Exception as e:
            err = e if isinstance(e, CaptureError) else CaptureError(f"Failed to stop capture: {e}")
            logger.error("Stopping capture failed: %s", err.message)
            await channel.put(ProgressEvent.failed(PipelineStepIndex.STOPPING, err.message))
            await channel.close()
            return
        logger.info("Capture stopped")
        await channel.put(ProgressEvent.completed(PipelineStepIndex.STOPPING))

    def _launch_worker(self, channel: EventChannel) -> None:
        if self._worker is not None:
            return
        logger.info("Launching processing worker")
        self._worker = asyncio.ensure_future(asyncio.to_thread(self._work, channel))

    def _work(self, channel: EventChannel) -> None:
        """Worker thread body. Never raises; failures become FAILED events."""
        sink = _TrackingSink(channel)
        try:
            self.supervisor.run_pipeline_with_progress(sink)
        except Exception as e:
            logger.exception("Processing worker crashed at step %d", sink.last_step)
            channel.put_threadsafe(ProgressEvent.failed(sink.last_step, e))
        finally:
            channel.close_threadsafe()
