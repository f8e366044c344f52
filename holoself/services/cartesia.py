"""
Cartesia Sonic — real-time text-to-speech for the agent voice.

Returns raw WAV bytes (PCM s16le, 24 kHz).
"""

from __future__ import annotations

import logging

import httpx

from holoself.settings import AppSettings

logger = logging.getLogger("holoself.services.cartesia")

CARTESIA_API_URL = "https://api.cartesia.ai/tts/bytes"
CARTESIA_VERSION = "2024-06-10"
SAMPLE_RATE = 24000


class TTSError(Exception):
    pass


class CartesiaClient:
    def __init__(self, settings: AppSettings, timeout: float = 30.0) -> None:
        self.api_key = settings.cartesia_api_key
        self.voice_id = settings.cartesia_voice_id
        self.model_id = settings.cartesia_model_id
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def build_request(self, text: str) -> dict:
        return {
            "model_id": self.model_id,
            "transcript": text,
            "voice": {"mode": "id", "id": self.voice_id},
            "output_format": {
                "container": "wav",
                "sample_rate": SAMPLE_RATE,
                "encoding": "pcm_s16le",
            },
        }

    async def synthesize(self, text: str) -> bytes:
        if not self.api_key:
            raise TTSError("CARTESIA_API_KEY not configured.")

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    CARTESIA_API_URL,
                    json=self.build_request(text),
                    headers={
                        "X-API-Key": self.api_key,
                        "Cartesia-Version": CARTESIA_VERSION,
                    },
                    timeout=self.timeout,
                )
        except httpx.HTTPError as e:
            raise TTSError(f"Cartesia API error: {e}") from e

        if response.status_code != 200:
            raise TTSError(f"Cartesia API {response.status_code} — {response.text[:300]}")

        logger.info("Cartesia synthesized %d bytes for %d chars", len(response.content), len(text))
        return response.content
