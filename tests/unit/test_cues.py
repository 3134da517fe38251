"""Tests for countdown cues (subprocess mocked)."""

import subprocess

from screencaster.session import cues
from screencaster.session.cues import BEEP_FREQUENCIES, play_countdown_cue


class _FakeStdout:
    def close(self):
        pass


class _FakeProducer:
    def __init__(self, cmd, **kwargs):
        self.cmd = cmd
        self.stdout = _FakeStdout()

    def poll(self):
        return 0

    def wait(self):
        return 0


class TestCountdownCues:
    def test_frequencies_descend(self):
        freqs = [BEEP_FREQUENCIES[c] for c in (5, 4, 3, 2, 1)]
        assert freqs == sorted(freqs, reverse=True)

    def test_count_without_tone_is_silent(self, monkeypatch):
        def fail(*args, **kwargs):
            raise AssertionError("no process should be started")

        monkeypatch.setattr(cues.subprocess, "Popen", fail)
        assert play_countdown_cue(0) is False
        assert play_countdown_cue(9) is False

    def test_plays_through_first_working_player(self, monkeypatch):
        produced = []
        players = []

        def popen(cmd, **kwargs):
            produced.append(cmd)
            return _FakeProducer(cmd)

        def run(cmd, **kwargs):
            players.append(cmd[0])
            return subprocess.CompletedProcess(cmd, 0 if cmd[0] == "aplay" else 1)

        monkeypatch.setattr(cues.subprocess, "Popen", popen)
        monkeypatch.setattr(cues.subprocess, "run", run)

        assert play_countdown_cue(3, duration=0.1) is True
        assert players == ["pw-cat", "aplay"]
        assert "sine=frequency=698:duration=0.1" in produced[0]

    def test_falls_back_to_bell(self, monkeypatch, capsys):
        def popen(cmd, **kwargs):
            raise FileNotFoundError("ffmpeg")

        monkeypatch.setattr(cues.subprocess, "Popen", popen)
        assert play_countdown_cue(1, duration=0.1) is False
        assert capsys.readouterr().out == "\a"
