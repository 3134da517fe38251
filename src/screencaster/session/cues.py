"""Audible countdown cues."""

import logging
import subprocess
import sys

from screencaster.config import get_settings

logger = logging.getLogger(__name__)

# Descending A5 to C#5, one tone per remaining second.
BEEP_FREQUENCIES: dict[int, int] = {
    5: 880,
    4: 784,
    3: 698,
    2: 622,
    1: 554,
}

PLAYERS: list[list[str]] = [
    ["pw-cat", "--playback", "-"],
    ["aplay", "-q", "-"],
]


def play_countdown_cue(count: int, duration: float | None = None) -> bool:
    """Play the tone for ``count``. Returns False if nothing could be played."""
    freq = BEEP_FREQUENCIES.get(count)
    if freq is None:
        return False

    duration = duration or get_settings().cue_duration_seconds
    tone_cmd = [
        "ffmpeg",
        "-loglevel",
        "quiet",
        "-f",
        "lavfi",
        "-i",
        f"sine=frequency={freq}:duration={duration}",
        "-f",
        "wav",
        "-",
    ]
    for player_cmd in PLAYERS:
        if _pipe_tone(tone_cmd, player_cmd):
            return True

    # Terminal bell as a last resort
    sys.stdout.write("\a")
    sys.stdout.flush()
    return False


def _pipe_tone(tone_cmd: list[str], player_cmd: list[str]) -> bool:
    """Pipe a generated tone into an audio player."""
    try:
        producer = subprocess.Popen(tone_cmd, stdout=subprocess.PIPE, stderr=subprocess.DEVNULL)
    except OSError:
        return False

    try:
        player = subprocess.run(
            player_cmd,
            stdin=producer.stdout,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            timeout=5,
        )
        return player.returncode == 0
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug("Cue player %s unavailable: %s", player_cmd[0], e)
        return False
    finally:
        producer.stdout.close()
        if producer.poll() is None:
            producer.kill()
        producer.wait()
