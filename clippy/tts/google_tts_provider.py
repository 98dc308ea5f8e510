"""
TTS implementation using the Google Cloud Text-to-Speech REST API.

Used when a Google Cloud API key is configured. The API returns the
MP3 audio base64-encoded in the "audioContent" field.
"""

import base64
import logging
from pathlib import Path
from typing import Optional

import httpx

from .base import BaseTTS, TTSError, TTSResult

logger = logging.getLogger(__name__)

SYNTHESIZE_URL = "https://texttospeech.googleapis.com/v1/text:synthesize"


class GoogleCloudTTSProvider(BaseTTS):
    """
    TTS provider using Google Cloud WaveNet voices.

    Attributes:
        api_key: Google Cloud API key
        project_id: Optional billing project (sent as x-goog-user-project)
        voice: Voice name (e.g., "ru-RU-Wavenet-D")
        language_code: BCP-47 language code
    """

    def __init__(
        self,
        api_key: str,
        project_id: str = "",
        voice: str = "ru-RU-Wavenet-D",
        language_code: str = "ru-RU",
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.project_id = project_id
        self.voice = voice
        self.language_code = language_code
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def build_payload(self, text: str) -> dict:
        return {
            "input": {"text": text},
            "voice": {
                "languageCode": self.language_code,
                "name": self.voice,
            },
            "audioConfig": {"audioEncoding": "MP3"},
        }

    async def synthesize(self, text: str, output_path: Path) -> TTSResult:
        headers = {"Content-Type": "application/json"}
        if self.project_id:
            headers["x-goog-user-project"] = self.project_id

        try:
            response = await self._client.post(
                SYNTHESIZE_URL,
                params={"key": self.api_key},
                headers=headers,
                json=self.build_payload(text),
            )
        except httpx.HTTPError as e:
            raise TTSError(f"Request error: {e}") from e

        if not response.is_success:
            raise TTSError(f"API error: {response.status_code}")

        try:
            audio_content = response.json()["audioContent"]
            audio = base64.b64decode(audio_content)
        except (ValueError, KeyError, TypeError) as e:
            raise TTSError(f"audioContent missing or invalid: {e}") from e

        output_path.write_bytes(audio)
        logger.debug(f"Google TTS: {len(audio)} bytes for {len(text)} chars")
        return TTSResult(audio_path=output_path)

    async def close(self) -> None:
        await self._client.aclose()
