"""
Audio playback through an external command-line player.

Supports MP3 (Edge TTS, Google Cloud). Uses ffplay, mpv, afplay or
aplay depending on availability.
"""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

PLAYERS = [
    ["ffplay", "-nodisp", "-autoexit", "-loglevel", "quiet"],
    ["mpv", "--no-terminal", "--no-video"],
    ["afplay"],  # macOS
    ["aplay"],  # WAV only
]


def find_player() -> Optional[list[str]]:
    """First available player command, or None."""
    for command in PLAYERS:
        if shutil.which(command[0]):
            return command
    return None


def play_audio(audio_path: Path, timeout: float = 120.0) -> None:
    """
    Play an audio file and wait until it finishes.

    Raises:
        FileNotFoundError: no audio player is installed
        subprocess.SubprocessError: the player failed or timed out
    """
    command = find_player()
    if command is None:
        raise FileNotFoundError("No audio player found (ffplay, mpv, afplay, aplay)")

    logger.debug(f"🔊 Playing {audio_path.name} with {command[0]}")
    subprocess.run(
        [*command, str(audio_path)],
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        timeout=timeout,
        check=True,
    )
