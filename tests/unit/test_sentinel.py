"""Tests for external recording detection."""

import asyncio
import os
from types import SimpleNamespace

import pytest

from screencaster.session import sentinel as sentinel_module
from screencaster.session.sentinel import ExternalRecordingSentinel, PsutilProcessLister
from tests.conftest import FakeProcessLister, wait_until


def _proc(pid, name, ppid=1):
    return SimpleNamespace(info={"pid": pid, "ppid": ppid, "name": name})


class TestObserve:
    def test_poll_sequence_notifies_on_flips_only(self):
        sequence = [set(), set(), {4242}, {4242}, set()]
        sentinel = ExternalRecordingSentinel(FakeProcessLister([]), interval=1.0)
        flips = [i for i, pids in enumerate(sequence) if sentinel.observe(pids)]
        assert flips == [2, 4]

    def test_pid_set_tracks_latest_poll(self):
        sentinel = ExternalRecordingSentinel(FakeProcessLister([]), interval=1.0)
        sentinel.observe({1, 2})
        assert not sentinel.observe({2, 3})
        assert sentinel.pids == {2, 3}
        assert sentinel.active


class TestPoll:
    def test_notifications_match_flips(self):
        lister = FakeProcessLister([set(), set(), {7}, {7}, set()])
        changes = []
        sentinel = ExternalRecordingSentinel(
            lister, interval=1.0, on_change=lambda active, pids: changes.append((active, pids))
        )

        async def scenario():
            for _ in range(5):
                await sentinel.poll()

        asyncio.run(scenario())
        assert changes == [(True, {7}), (False, set())]

    def test_failed_poll_counts_as_inactive(self):
        lister = FakeProcessLister([{7}, OSError("permission denied")])
        changes = []
        sentinel = ExternalRecordingSentinel(
            lister, interval=1.0, on_change=lambda active, pids: changes.append(active)
        )

        async def scenario():
            await sentinel.poll()
            await sentinel.poll()

        asyncio.run(scenario())
        assert changes == [True, False]
        assert not sentinel.active


class TestScheduling:
    def test_self_rescheduling_until_stopped(self):
        lister = FakeProcessLister([set(), {9}])
        sentinel = ExternalRecordingSentinel(lister, interval=0.01)

        async def scenario():
            sentinel.start()
            await wait_until(lambda: lister.polls >= 3)
            sentinel.stop()
            await asyncio.sleep(0.02)
            polls = lister.polls
            await asyncio.sleep(0.05)
            return polls

        polls = asyncio.run(scenario())
        assert lister.polls == polls
        assert sentinel.active
        assert not sentinel.running

    def test_should_poll_gate(self):
        lister = FakeProcessLister([{9}])
        gate = {"open": False}
        sentinel = ExternalRecordingSentinel(
            lister, interval=0.01, should_poll=lambda: gate["open"]
        )

        async def scenario():
            sentinel.start()
            await asyncio.sleep(0.05)
            assert lister.polls == 0
            gate["open"] = True
            await wait_until(lambda: lister.polls > 0)
            sentinel.stop()

        asyncio.run(scenario())
        assert sentinel.active


class TestPsutilProcessLister:
    def test_matches_configured_names(self, monkeypatch):
        procs = [
            _proc(100, "wl-screenrec"),
            _proc(101, "ffmpeg"),
            _proc(102, "wl-screenrec", ppid=os.getpid()),
            _proc(103, "wf-recorder"),
        ]
        monkeypatch.setattr(sentinel_module.psutil, "process_iter", lambda attrs: iter(procs))
        lister = PsutilProcessLister(["wl-screenrec", "wf-recorder"])
        assert lister.list_active_capture_processes() == {100, 103}

    @pytest.mark.parametrize("names", [["no-such-capture-tool-xyz"]])
    def test_real_process_table(self, names):
        assert PsutilProcessLister(names).list_active_capture_processes() == set()
