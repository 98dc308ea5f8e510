"""
Speech output interface.

Every voice provider implements BaseTTS.synthesize().
Same principle as for the responders: you can switch providers
(Edge TTS → Google Cloud) without modifying the rest of the code.

Speech is a fire-and-forget side effect: speak() synthesizes to a
temporary file, plays it and removes it. Callers log its failures,
they never stop the conversation.
"""

import asyncio
import logging
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from .player import play_audio

logger = logging.getLogger(__name__)


class TTSError(Exception):
    """Synthesis or playback failed."""


@dataclass
class TTSResult:
    """
    Where synthesize() put the audio.

    Attributes:
        audio_path: Path to generated audio file
        duration: Length in seconds, None when the provider does not say
    """
    audio_path: Path
    duration: float | None = None


class BaseTTS(ABC):
    """
    A voice provider.

    Subclasses only write audio to a path; speak() takes care of the
    temporary file and of playback.
    """

    suffix = ".mp3"

    @abstractmethod
    async def synthesize(self, text: str, output_path: Path) -> TTSResult:
        """
        Convert text to an audio file.

        Args:
            text: What to say
            output_path: Where to write the audio

        Raises:
            TTSError: on synthesis failure
        """

    async def speak(self, text: str) -> None:
        """Synthesize `text` and play it, blocking only this coroutine."""
        if not text.strip():
            return

        with tempfile.NamedTemporaryFile(suffix=self.suffix, delete=False) as f:
            temp_path = Path(f.name)

        try:
            result = await self.synthesize(text, temp_path)
            logger.debug(f"🔊 Synthesized {len(text)} chars with {type(self).__name__}")
            # Playback is a blocking subprocess, keep it off the event loop
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, play_audio, result.audio_path)
        finally:
            temp_path.unlink(missing_ok=True)

    async def close(self) -> None:
        """Release resources. Nothing to do by default."""
