"""Session controller. Owns the recording session state machine.

    idle ──new recording──▶ countdown ──terminal tick──▶ recording
     ▲          ◀──cancel──┘                                 │ stop
     └──── complete hold ◀── processing (success) ◀──────────┘

A failed run stays in processing until the application quits. Every method
here must be called from the event loop; blocking work goes to threads.
"""

import asyncio
import logging
from collections.abc import Callable, Coroutine
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel

from screencaster.capture.supervisor import CaptureSupervisor
from screencaster.config import Settings, get_settings
from screencaster.models.errors import (
    CaptureError,
    ErrorResponse,
    PipelineError,
    ScreencasterError,
)
from screencaster.models.pipeline import PipelineOutcome, ProcessingState
from screencaster.models.recording import (
    EnvironmentInfo,
    FileInfo,
    RecordingInfo,
    RecordingMetadata,
    RecordingSettings,
    RecordingStatus,
)
from screencaster.models.session import CaptureOptions, SessionState
from screencaster.pipeline.driver import PipelineDriver
from screencaster.session.context import DisplayContext
from screencaster.session.cues import play_countdown_cue
from screencaster.session.sentinel import (
    ExternalRecordingSentinel,
    ProcessLister,
    PsutilProcessLister,
)
from screencaster.storage.metadata_store import MetadataStore

logger = logging.getLogger(__name__)

CuePlayer = Callable[[int], Any]


class SessionChanged(BaseModel):
    """Notification delivered to presentation-layer listeners."""

    state: SessionState
    reason: Literal["session", "countdown", "pipeline", "external", "error"]


Listener = Callable[[SessionChanged], None]


class SessionController:
    """Top-level orchestrator for one recording session at a time."""

    def __init__(
        self,
        supervisor: CaptureSupervisor,
        settings: Settings | None = None,
        metadata_store: MetadataStore | None = None,
        process_lister: ProcessLister | None = None,
        cue_player: CuePlayer | None = None,
        context: DisplayContext | None = None,
    ):
        self.settings = settings or get_settings()
        self.supervisor = supervisor
        self.store = metadata_store or MetadataStore(self.settings.metadata_filename)
        self.context = context or DisplayContext()
        self.driver = PipelineDriver(supervisor, self.settings.progress_queue_size)
        self.processing = ProcessingState()
        self.state = SessionState.IDLE
        self.countdown = 0
        self.options: CaptureOptions | None = None
        self.metadata: RecordingMetadata | None = None
        self.recording_info: RecordingInfo | None = None
        self.outcome: PipelineOutcome | None = None

        if cue_player is None and self.settings.cues_enabled:
            cue_player = play_countdown_cue
        self._cue_player = cue_player
        self.sentinel = ExternalRecordingSentinel(
            process_lister or PsutilProcessLister(self.settings.external_capture_process_names),
            interval=self.settings.sentinel_poll_seconds,
            on_change=self._on_external_change,
            should_poll=lambda: self.state != SessionState.COUNTDOWN,
        )

        self._listeners: list[Listener] = []
        self._tasks: set[asyncio.Task] = set()
        self._countdown_handle: asyncio.TimerHandle | None = None
        self._hold_handle: asyncio.TimerHandle | None = None
        self._starting = False
        self._error: ScreencasterError | None = None

    # --- lifecycle ---

    async def open(self) -> None:
        """Pick up a capture already in progress and start the sentinel."""
        try:
            status = await asyncio.to_thread(self.supervisor.get_status)
        except Exception as e:
            logger.warning("Could not query capture status: %s", e)
        else:
            if status.is_recording and self.state == SessionState.IDLE:
                logger.info("Capture already in progress, resuming session")
                self._set_state(SessionState.RECORDING)
        self.sentinel.start()

    def close(self) -> None:
        """Quit: stop every timer and background activity."""
        self._cancel_countdown_timer()
        if self._hold_handle is not None:
            self._hold_handle.cancel()
            self._hold_handle = None
        self.sentinel.stop()
        for task in list(self._tasks):
            task.cancel()
        logger.info("Session controller closed in state %s", self.state)

    # --- observation ---

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def starting(self) -> bool:
        """True while the terminal countdown tick is still bringing capture up."""
        return self._starting

    def snapshot(self) -> ProcessingState:
        """Copy of the processing state, safe to read between messages."""
        return self.processing.model_copy(deep=True)

    def take_error(self) -> ErrorResponse | None:
        """Return the last user-facing error once, then forget it."""
        if self._error is None:
            return None
        response = ErrorResponse.from_exception(self._error)
        self._error = None
        return response

    async def wait_for_state(self, state: SessionState) -> None:
        if self.state == state:
            return
        done = asyncio.get_running_loop().create_future()

        def listener(change: SessionChanged) -> None:
            if change.state == state and not done.done():
                done.set_result(None)

        self.add_listener(listener)
        try:
            await done
        finally:
            self.remove_listener(listener)

    # --- user requests ---

    def request_new_recording(
        self, options: CaptureOptions, metadata: RecordingMetadata | None = None
    ) -> bool:
        """Idle → countdown."""
        if self.state != SessionState.IDLE:
            logger.debug("New recording ignored in state %s", self.state)
            return False
        self.options = options
        self.metadata = metadata or RecordingMetadata()
        self.countdown = self.settings.countdown_seconds
        self.context.error = None
        self.context.countdown = self.countdown
        self._set_state(SessionState.COUNTDOWN)
        self._cue(self.countdown)
        self._schedule_countdown_tick()
        return True

    def cancel_countdown(self) -> bool:
        """Countdown → idle, before anything has been created."""
        if self.state != SessionState.COUNTDOWN:
            return False
        self._cancel_countdown_timer()
        self.options = None
        self.metadata = None
        logger.info("Countdown cancelled")
        self._set_state(SessionState.IDLE)
        return True

    def request_stop(self) -> bool:
        """Recording → processing."""
        if self.state != SessionState.RECORDING or self._starting:
            logger.debug("Stop ignored in state %s", self.state)
            return False
        self._begin_processing(stop_capture=True)
        return True

    def reprocess(self, options: CaptureOptions) -> bool:
        """Idle → processing for an already stopped capture."""
        if self.state != SessionState.IDLE:
            logger.debug("Reprocess ignored in state %s", self.state)
            return False
        self.options = options
        self.recording_info = options.recording_info
        self._begin_processing(stop_capture=False)
        return True

    # --- countdown ---

    def _schedule_countdown_tick(self) -> None:
        loop = asyncio.get_running_loop()
        self._countdown_handle = loop.call_later(
            self.settings.countdown_tick_seconds, self._on_countdown_tick
        )

    def _cancel_countdown_timer(self) -> None:
        if self._countdown_handle is not None:
            self._countdown_handle.cancel()
            self._countdown_handle = None

    def _on_countdown_tick(self) -> None:
        self._countdown_handle = None
        if self.state != SessionState.COUNTDOWN:
            return

        self.countdown -= 1
        if self.countdown < 0:
            self._starting = True
            self._set_state(SessionState.RECORDING)
            self._spawn(self._begin_capture())
            return

        if self.countdown > 0:
            self._cue(self.countdown)
        self.context.countdown = self.countdown
        self._notify("countdown")
        self._schedule_countdown_tick()

    def _cue(self, count: int) -> None:
        if self._cue_player is None:
            return
        asyncio.get_running_loop().run_in_executor(None, self._cue_player, count)

    # --- capture start ---

    async def _begin_capture(self) -> None:
        options = self.options or CaptureOptions()
        metadata = self.metadata or RecordingMetadata()
        try:
            info = await asyncio.to_thread(self._prepare_output, options, metadata)
            options = options.model_copy(
                update={"output_dir": Path(info.files.folder_path), "recording_info": info}
            )
            await asyncio.to_thread(self._start_capture, options)
        except ScreencasterError as e:
            self._abort_start(e)
            return
        finally:
            self._starting = False

        self.options = options
        self.recording_info = options.recording_info
        logger.info("Recording started in %s", options.output_dir)
        self._notify("session")

    def _prepare_output(
        self, options: CaptureOptions, metadata: RecordingMetadata
    ) -> RecordingInfo:
        """Create the session folder and write the initial metadata."""
        base_dir = options.output_dir or self.settings.videos_dir
        folder = Path(base_dir) / metadata.generate_folder_name()
        self.store.create_folder(folder)
        info = RecordingInfo(
            metadata=metadata,
            environment=EnvironmentInfo.detect(monitor=options.monitor),
            files=FileInfo(folder_path=str(folder)),
            settings=RecordingSettings(
                screen_enabled=options.screen_enabled,
                audio_enabled=options.audio_enabled,
                webcam_enabled=options.webcam_enabled,
                vertical_enabled=options.vertical_enabled,
                logos_enabled=options.logos.any_selected,
                left_logo=options.logos.left_logo,
                right_logo=options.logos.right_logo,
                bottom_logo=options.logos.bottom_logo,
                title_color=options.logos.title_color,
                gif_loop_mode=options.logos.gif_loop_mode,
            ),
            status=RecordingStatus.RECORDING,
        )
        self.store.save(info)
        return info

    def _start_capture(self, options: CaptureOptions) -> None:
        try:
            self.supervisor.start(options)
        except ScreencasterError:
            raise
        except Exception as e:
            raise CaptureError(f"Failed to start capture: {e}") from e

    def _abort_start(self, error: ScreencasterError) -> None:
        logger.error("Recording could not start: %s", error.message)
        if self.state != SessionState.RECORDING:
            return
        self.options = None
        self.metadata = None
        self._surface(error)
        self._set_state(SessionState.IDLE)

    # --- processing ---

    def _begin_processing(self, stop_capture: bool) -> None:
        self._set_state(SessionState.PROCESSING)
        self.outcome = None
        self.processing.reset()
        if self.options is not None:
            self.processing.configure_skips(
                *self.options.capabilities(), skip_stopping=not stop_capture
            )
        elif not stop_capture:
            self.processing.configure_skips(True, True, True, True, skip_stopping=True)
        self.processing.start()
        self._notify("pipeline")
        self._spawn(self._run_pipeline(stop_capture))

    async def _run_pipeline(self, stop_capture: bool) -> None:
        outcome = await self.driver.run(
            self.processing, stop_capture=stop_capture, on_change=self._on_pipeline_change
        )
        self._on_pipeline_done(outcome)

    def _on_pipeline_change(self, snapshot: ProcessingState) -> None:
        self._notify("pipeline")

    def _on_pipeline_done(self, outcome: PipelineOutcome) -> None:
        self.outcome = outcome
        if self.state != SessionState.PROCESSING:
            return
        if not outcome.success:
            message = outcome.error.message if outcome.error else "Processing failed"
            step = -1 if outcome.failed_step is None else outcome.failed_step
            self._surface(PipelineError(message, step_index=step))
            self.context.status = "Processing failed"
            self._notify("error")
            return

        self.context.status = "Processing complete"
        self._notify("pipeline")
        loop = asyncio.get_running_loop()
        self._hold_handle = loop.call_later(
            self.settings.completion_hold_seconds, self._return_to_idle
        )

    def _return_to_idle(self) -> None:
        self._hold_handle = None
        if self.state != SessionState.PROCESSING:
            return
        self.processing.reset()
        self.options = None
        self.metadata = None
        self._set_state(SessionState.IDLE)

    # --- sentinel ---

    def _on_external_change(self, active: bool, pids: set[int]) -> None:
        self.context.external_recording = active
        self.context.external_pids = sorted(pids)
        self._notify("external")

    # --- helpers ---

    def _set_state(self, state: SessionState) -> None:
        if state == self.state:
            return
        logger.info("Session state %s -> %s", self.state, state)
        self.state = state
        self.context.show_state(state)
        self._notify("session")

    def _surface(self, error: ScreencasterError) -> None:
        self._error = error
        self.context.error = ErrorResponse.from_exception(error)

    def _notify(self, reason: str) -> None:
        change = SessionChanged(state=self.state, reason=reason)
        for listener in list(self._listeners):
            listener(change)

    def _spawn(self, coro: Coroutine) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task
