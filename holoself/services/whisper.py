"""
Whisper.cpp STT — speech-to-text through the local whisper.cpp CLI.

Binary and GGML model are discovered in this order:
  1. explicit path from settings (WHISPER_CPP_PATH / WHISPER_MODEL_PATH)
  2. well-known install directories under the home dir
  3. PATH (binary only)

Transcription shells out and blocks; run it on a worker thread.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from holoself.settings import AppSettings

logger = logging.getLogger("holoself.services.whisper")

BINARY_NAMES = ("whisper-cli", "whisper", "main")

# best PT-BR accuracy first
MODEL_NAMES = (
    "ggml-large-v3-turbo.bin",
    "ggml-large-v3-turbo-q5_0.bin",
    "ggml-base.bin",
    "ggml-small.bin",
    "ggml-tiny.bin",
    "ggml-base.en.bin",
)


class TranscriptionError(Exception):
    pass


class WhisperStatus(BaseModel):
    binary_found: bool
    binary_path: Optional[str] = None
    model_found: bool
    model_path: Optional[str] = None


def _binary_dirs(home: Path) -> list[Path]:
    return [
        home / ".holoself" / "bin",
        home / "whisper.cpp" / "build" / "bin",
        home / "whisper.cpp",
        home / ".local" / "bin",
        Path("/usr/local/bin"),
        Path("/opt/homebrew/bin"),
    ]


def _model_dirs(home: Path) -> list[Path]:
    return [
        home / ".holoself" / "models",
        home / "whisper.cpp" / "models",
        home / ".local" / "share" / "whisper",
        home / "Models",
    ]


@dataclass
class WhisperTranscriber:
    binary_path: Optional[str] = None
    model_path: Optional[str] = None
    language: str = "pt"
    threads: int = 4
    home: Optional[Path] = None

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "WhisperTranscriber":
        return cls(
            binary_path=settings.whisper_binary_path,
            model_path=settings.whisper_model_path,
            language=settings.whisper_language,
        )

    def find_binary(self) -> Path:
        if self.binary_path and Path(self.binary_path).exists():
            return Path(self.binary_path)

        for directory in _binary_dirs(self.home or Path.home()):
            for name in BINARY_NAMES:
                candidate = directory / name
                if candidate.exists():
                    return candidate

        for name in BINARY_NAMES:
            found = shutil.which(name)
            if found:
                return Path(found)

        raise TranscriptionError(
            "Motor de transcrição não encontrado. Abra as configurações e execute a instalação automática."
        )

    def find_model(self) -> Path:
        if self.model_path and Path(self.model_path).exists():
            return Path(self.model_path)

        for directory in _model_dirs(self.home or Path.home()):
            for name in MODEL_NAMES:
                candidate = directory / name
                if candidate.exists():
                    return candidate

        raise TranscriptionError(
            "Modelo de voz não encontrado. Abra as configurações e execute a instalação automática."
        )

    def transcribe(self, audio_path: str, language: Optional[str] = None) -> str:
        """Transcribe a WAV (16 kHz mono preferred) file, keeping the spoken language."""
        binary = self.find_binary()
        model = self.find_model()

        audio = Path(audio_path)
        if not audio.exists():
            raise TranscriptionError(f"Audio file not found: {audio_path}")

        cmd = [
            str(binary),
            "-m", str(model),
            "-f", str(audio),
            "-l", language or self.language,
            "-nt",
            "-np",
            "-t", str(self.threads),
        ]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            raise TranscriptionError(f"Failed to run whisper.cpp at {binary}: {e}") from e

        if result.returncode != 0:
            raise TranscriptionError(f"Whisper.cpp error: {result.stderr.strip()}")

        text = result.stdout.strip()
        logger.info("Transcribed %s (%d chars)", audio.name, len(text))
        return text

    def is_available(self) -> bool:
        status = self.status()
        return status.binary_found and status.model_found

    def status(self) -> WhisperStatus:
        try:
            binary = str(self.find_binary())
        except TranscriptionError:
            binary = None
        try:
            model = str(self.find_model())
        except TranscriptionError:
            model = None
        return WhisperStatus(
            binary_found=binary is not None,
            binary_path=binary,
            model_found=model is not None,
            model_path=model,
        )
