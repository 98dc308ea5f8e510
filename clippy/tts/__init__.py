"""
TTS Module - Text-to-Speech providers.

create_tts() picks Google Cloud when an API key is configured,
Edge TTS otherwise.
"""

import logging

from .base import BaseTTS, TTSError, TTSResult
from .edge_tts_provider import EdgeTTSProvider
from .google_tts_provider import GoogleCloudTTSProvider
from .player import play_audio

logger = logging.getLogger(__name__)


def create_tts(tts_config) -> BaseTTS | None:
    """
    Create the appropriate TTS provider.

    Args:
        tts_config: TTSConfig section of the app configuration

    Returns:
        TTS provider instance, or None when speech is disabled
    """
    if not tts_config.enabled:
        logger.info("🔇 TTS disabled")
        return None

    if tts_config.provider == "google" or tts_config.google_api_key:
        if tts_config.google_api_key:
            logger.info(f"🔊 TTS: Google Cloud ({tts_config.google_voice})")
            return GoogleCloudTTSProvider(
                api_key=tts_config.google_api_key,
                project_id=tts_config.google_project_id,
                voice=tts_config.google_voice,
                language_code=tts_config.language_code,
            )
        logger.warning("Google TTS selected but GOOGLE_CLOUD_API_KEY is missing, using Edge TTS")

    logger.info(f"🔊 TTS: Edge TTS ({tts_config.voice})")
    return EdgeTTSProvider(voice=tts_config.voice, rate=tts_config.rate, pitch=tts_config.pitch)


__all__ = [
    "BaseTTS",
    "TTSError",
    "TTSResult",
    "EdgeTTSProvider",
    "GoogleCloudTTSProvider",
    "play_audio",
    "create_tts",
]
