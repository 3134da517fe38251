"""Capture supervisor interface.

The supervisor owns the actual recording and encoding processes. The session
core only talks to it through this interface.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable

from screencaster.models.events import ProgressEvent
from screencaster.models.session import CaptureOptions, CaptureStatus

EventSink = Callable[[ProgressEvent], None]


class CaptureSupervisor(ABC):
    """Abstract base class for capture back-ends."""

    @abstractmethod
    def start(self, options: CaptureOptions) -> None:
        """Begin capture. Raises CaptureError on failure."""
        ...

    @abstractmethod
    def stop(self) -> None:
        """End the active capture. Raises CaptureError on failure."""
        ...

    @abstractmethod
    def get_status(self) -> CaptureStatus:
        """Return a snapshot of the capture state."""
        ...

    @abstractmethod
    def run_pipeline_with_progress(self, sink: EventSink) -> None:
        """Run the post-processing steps, reporting each through ``sink``.

        Blocking; called from a worker thread. Returns once the pipeline
        has concluded.
        """
        ...
