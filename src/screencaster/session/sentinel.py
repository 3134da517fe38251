"""Detection of capture processes started outside this session."""

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Callable

import psutil

from screencaster.config import get_settings

logger = logging.getLogger(__name__)

ChangeListener = Callable[[bool, set[int]], None]


class ProcessLister(ABC):
    """Capability: enumerate capture processes not owned by this program."""

    @abstractmethod
    def list_active_capture_processes(self) -> set[int]:
        ...


class PsutilProcessLister(ProcessLister):
    """Finds capture processes by executable name using psutil."""

    def __init__(self, names: list[str] | None = None):
        self.names = set(names or get_settings().external_capture_process_names)

    def list_active_capture_processes(self) -> set[int]:
        own_pid = os.getpid()
        pids = set()
        for proc in psutil.process_iter(["pid", "ppid", "name"]):
            info = proc.info
            if info["name"] not in self.names:
                continue
            # Children of this process belong to our own capture supervisor.
            if info["pid"] == own_pid or info["ppid"] == own_pid:
                continue
            pids.add(info["pid"])
        return pids


class ExternalRecordingSentinel:
    """Self-rescheduling poll that reports when external capture starts or stops.

    Listeners are only told about flips of the active flag; repeated polls
    with the same answer are silent. A failed poll counts as "no external
    recording".
    """

    def __init__(
        self,
        lister: ProcessLister,
        interval: float | None = None,
        on_change: ChangeListener | None = None,
        should_poll: Callable[[], bool] | None = None,
    ):
        self.lister = lister
        self.interval = interval if interval is not None else get_settings().sentinel_poll_seconds
        self.on_change = on_change
        self.should_poll = should_poll
        self.active = False
        self.pids: set[int] = set()
        self._handle: asyncio.TimerHandle | None = None
        self._task: asyncio.Task | None = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def observe(self, pids: set[int]) -> bool:
        """Record one poll result. Returns True if the active flag flipped."""
        active = bool(pids)
        changed = active != self.active
        self.active = active
        self.pids = set(pids)
        return changed

    async def poll(self) -> bool:
        try:
            pids = await asyncio.to_thread(self.lister.list_active_capture_processes)
        except Exception as e:
            logger.warning("External recording poll failed: %s", e)
            pids = set()

        changed = self.observe(pids)
        if changed:
            logger.info(
                "External recording %s (pids=%s)",
                "detected" if self.active else "ended",
                sorted(self.pids),
            )
            if self.on_change:
                self.on_change(self.active, set(self.pids))
        return changed

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._schedule()

    def stop(self) -> None:
        self._running = False
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self._task is not None:
            self._task.cancel()
            self._task = None

    def _schedule(self) -> None:
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.interval, self._wake)

    def _wake(self) -> None:
        self._handle = None
        if not self._running:
            return
        if self.should_poll is not None and not self.should_poll():
            self._schedule()
            return
        self._task = asyncio.get_running_loop().create_task(self._poll_and_reschedule())

    async def _poll_and_reschedule(self) -> None:
        try:
            await self.poll()
        finally:
            self._task = None
            if self._running:
                self._schedule()
