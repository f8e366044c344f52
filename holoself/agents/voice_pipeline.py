"""
Voice Pipeline — speech in, speech out.

Whisper transcription and native TTS block (they shell out to local
binaries), so both run on this pipeline's own thread pool rather than the
default executor that serves storage reads.  Cartesia is async HTTP and
runs on the event loop.

Synthesis order: Cartesia when an API key is configured, then macOS ``say``.
"""

from __future__ import annotations

import asyncio
import logging
import tempfile
import uuid
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional

from holoself.agents.health_agent import HealthAgent
from holoself.schemas.health import AgentMessage
from holoself.services.cartesia import CartesiaClient, TTSError
from holoself.services.native_tts import NativeTTS
from holoself.services.whisper import TranscriptionError, WhisperTranscriber
from holoself.settings import AppSettings

logger = logging.getLogger("holoself.agents.voice_pipeline")


class VoicePipeline:
    def __init__(
        self,
        settings: AppSettings,
        tts: Optional[CartesiaClient] = None,
        native_tts: Optional[NativeTTS] = None,
        stt: Optional[WhisperTranscriber] = None,
        max_workers: int = 2,
        audio_dir: Optional[Path] = None,
    ) -> None:
        self.settings = settings
        self.tts = tts or CartesiaClient(settings)
        self.native_tts = native_tts or NativeTTS()
        self.stt = stt or WhisperTranscriber.from_settings(settings)
        self.audio_dir = audio_dir or Path(tempfile.gettempdir()) / "holoself"
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="holoself-voice")

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)

    async def _run_blocking(self, fn, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, fn, *args)

    # ── STT ──

    async def transcribe(self, audio_path: str) -> str:
        return await self._run_blocking(self.stt.transcribe, audio_path)

    def save_temp_audio(self, audio: bytes, suffix: str = ".wav") -> str:
        """Write uploaded audio to a temp file whisper.cpp can read."""
        self.audio_dir.mkdir(parents=True, exist_ok=True)
        path = self.audio_dir / f"voice_{uuid.uuid4().hex}{suffix}"
        path.write_bytes(audio)
        return str(path)

    async def process_voice_command(
        self, agent: HealthAgent, audio_path: str
    ) -> tuple[str, AgentMessage]:
        """Transcribe, remember the transcript, then ask the agent what to say.

        The audio file is deleted once transcription finishes, success or not.
        """
        try:
            transcript = await self.transcribe(audio_path)
        finally:
            Path(audio_path).unlink(missing_ok=True)
        if not transcript:
            raise TranscriptionError("Não consegui perceber o áudio.")

        await asyncio.to_thread(agent.record_transcript, transcript)
        logger.info("Voice command recorded: %r", transcript[:80])
        message = await agent.get_message()
        return transcript, message

    # ── TTS ──

    async def synthesize(self, text: str) -> bytes:
        if self.tts.configured:
            try:
                return await self.tts.synthesize(text)
            except TTSError as e:
                logger.warning("Cartesia TTS failed, falling back to native voice: %s", e)

        if not self.native_tts.is_available():
            raise TTSError("No text-to-speech engine available (Cartesia key missing, no macOS say).")
        return await self._run_blocking(self.native_tts.synthesize, text)
