"""Shared test fixtures and fake collaborators."""

import asyncio
import threading
from collections.abc import Callable, Iterable

import pytest

from screencaster.capture.supervisor import CaptureSupervisor, EventSink
from screencaster.config import Settings
from screencaster.models.events import ProgressEvent
from screencaster.models.pipeline import PipelineStepIndex
from screencaster.models.session import CaptureOptions, CaptureStatus
from screencaster.session.sentinel import ProcessLister


class FakeCaptureSupervisor(CaptureSupervisor):
    """In-memory capture supervisor that replays scripted pipeline events."""

    def __init__(
        self,
        events: Iterable[ProgressEvent] = (),
        start_error: Exception | None = None,
        stop_error: Exception | None = None,
        pipeline_error: Exception | None = None,
        recording: bool = False,
    ):
        self.events = list(events)
        self.start_error = start_error
        self.stop_error = stop_error
        self.pipeline_error = pipeline_error
        self.recording = recording
        self.calls: list[str] = []
        self.started_with: CaptureOptions | None = None
        self.pipeline_thread: str | None = None
        self._lock = threading.Lock()

    def _record(self, call: str) -> None:
        with self._lock:
            self.calls.append(call)

    def start(self, options: CaptureOptions) -> None:
        self._record("start")
        if self.start_error:
            raise self.start_error
        self.started_with = options
        self.recording = True

    def stop(self) -> None:
        self._record("stop")
        if self.stop_error:
            raise self.stop_error
        self.recording = False

    def get_status(self) -> CaptureStatus:
        return CaptureStatus(is_recording=self.recording)

    def run_pipeline_with_progress(self, sink: EventSink) -> None:
        self._record("pipeline")
        self.pipeline_thread = threading.current_thread().name
        for event in self.events:
            sink(event)
        if self.pipeline_error:
            raise self.pipeline_error


class FakeProcessLister(ProcessLister):
    """Replays a fixed sequence of poll results; the last one repeats."""

    def __init__(self, results: Iterable[set[int] | Exception]):
        self.results = list(results) or [set()]
        self.polls = 0

    def list_active_capture_processes(self) -> set[int]:
        result = self.results[min(self.polls, len(self.results) - 1)]
        self.polls += 1
        if isinstance(result, Exception):
            raise result
        return set(result)


def pipeline_events(
    skipped: Iterable[int] = (), fail_at: int | None = None, error: str = "boom"
) -> list[ProgressEvent]:
    """Events a well-behaved worker emits for steps after the stopping step."""
    skipped = set(skipped)
    events = []
    for index in list(PipelineStepIndex)[1:]:
        if index in skipped:
            events.append(ProgressEvent.skipped(index))
            continue
        events.append(ProgressEvent.started(index))
        events.append(ProgressEvent.progress(index, 50.0))
        if index == fail_at:
            events.append(ProgressEvent.failed(index, error))
            break
        events.append(ProgressEvent.completed(index))
    return events


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll ``predicate`` on the event loop until it holds."""
    async def _poll():
        while not predicate():
            await asyncio.sleep(0.005)

    await asyncio.wait_for(_poll(), timeout)


@pytest.fixture
def fast_settings(tmp_path):
    """Settings with short timers and a temporary videos directory."""
    return Settings(
        videos_dir=tmp_path / "videos",
        countdown_seconds=2,
        countdown_tick_seconds=0.01,
        completion_hold_seconds=0.05,
        sentinel_poll_seconds=0.01,
        cues_enabled=False,
        progress_queue_size=4,
    )


@pytest.fixture
def all_capabilities():
    return CaptureOptions(
        audio_enabled=True, screen_enabled=True, webcam_enabled=True, create_vertical=True
    )
