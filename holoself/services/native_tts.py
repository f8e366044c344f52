"""
macOS native TTS via the built-in ``say`` command — no API key needed.

Voice priority: Luciana (PT-BR) → Daniel (PT-PT) → system default.
The AIFF output is converted to 16-bit 24 kHz WAV with ``afconvert`` so it
matches Cartesia's format.  Blocking: run it on a worker thread.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
import uuid
from pathlib import Path

from holoself.services.cartesia import TTSError

logger = logging.getLogger("holoself.services.native_tts")

VOICES = ("Luciana", "Daniel", "")


class NativeTTS:
    def __init__(self, work_dir: Path | None = None) -> None:
        self.work_dir = work_dir or Path(tempfile.gettempdir()) / "holoself"

    @staticmethod
    def is_available() -> bool:
        return shutil.which("say") is not None and shutil.which("afconvert") is not None

    def synthesize(self, text: str) -> bytes:
        self.work_dir.mkdir(parents=True, exist_ok=True)
        stem = uuid.uuid4().hex
        aiff_path = self.work_dir / f"tts_{stem}.aiff"
        wav_path = self.work_dir / f"tts_{stem}.wav"

        try:
            if not self._say(text, aiff_path):
                raise TTSError("macOS say command failed with all voices")

            convert = subprocess.run(
                ["afconvert", "-f", "WAVE", "-d", "LEI16@24000", str(aiff_path), str(wav_path)],
                capture_output=True,
                text=True,
            )
            if convert.returncode != 0:
                raise TTSError(f"afconvert AIFF→WAV failed: {convert.stderr.strip()}")

            return wav_path.read_bytes()
        except OSError as e:
            raise TTSError(f"Native TTS failed: {e}") from e
        finally:
            aiff_path.unlink(missing_ok=True)
            wav_path.unlink(missing_ok=True)

    def _say(self, text: str, output: Path) -> bool:
        for voice in VOICES:
            cmd = ["say"]
            if voice:
                cmd += ["-v", voice]
            cmd += ["-o", str(output), text]
            try:
                result = subprocess.run(cmd, capture_output=True)
            except OSError as e:
                logger.warning("say failed to start: %s", e)
                return False
            if result.returncode == 0:
                return True
            logger.debug("say voice %r failed, trying next", voice or "default")
        return False
