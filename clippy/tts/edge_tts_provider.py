"""
Edge TTS provider - the default voice.

Talks to the free neural voices behind Microsoft Edge's read-aloud
feature. No key is needed, only network access; Russian has both a
male and a female neural voice.
"""

from pathlib import Path

import edge_tts

from .base import BaseTTS, TTSError, TTSResult


# Voices that sound right for the assistant
RECOMMENDED_VOICES = {
    "ru-RU": "ru-RU-DmitryNeural",
    "ru-RU-female": "ru-RU-SvetlanaNeural",
    "en-US": "en-US-GuyNeural",
}


class EdgeTTSProvider(BaseTTS):
    """
    Speech through edge-tts, saved as MP3.

    Attributes:
        voice: Edge voice short name
        rate: Relative speaking rate, e.g. "+10%"
        pitch: Relative pitch, e.g. "-5Hz"
    """

    def __init__(
        self,
        voice: str = RECOMMENDED_VOICES["ru-RU"],
        rate: str = "+0%",
        pitch: str = "+0Hz",
    ):
        self.voice = voice
        self.rate = rate
        self.pitch = pitch

    async def synthesize(self, text: str, output_path: Path) -> TTSResult:
        try:
            stream = edge_tts.Communicate(text, self.voice, rate=self.rate, pitch=self.pitch)
            await stream.save(str(output_path))
        except Exception as e:
            raise TTSError(f"Edge TTS synthesis failed: {e}") from e
        return TTSResult(output_path)
