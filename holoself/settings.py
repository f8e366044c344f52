"""
Centralized configuration for HoloSelf.

Settings live in ``settings.json`` under the app config dir.  API keys and
binary paths from the environment (or a ``.env`` file) take priority over
the file.  The resulting ``AppSettings`` is handed to each collaborator at
construction instead of being read from the environment at call time.
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

logger = logging.getLogger("holoself.settings")

APP_NAME = "holoself"
VERSION = "0.3.0"

# --- Directories ---
CONFIG_DIR = Path(os.getenv("HOLOSELF_CONFIG_DIR", Path.home() / ".config" / "com.holoself.os"))
DATA_DIR = Path(os.getenv("HOLOSELF_DATA_DIR", Path.home() / ".holoself"))

# --- Server ---
PORT = int(os.getenv("PORT", "8080"))

DEFAULT_CARTESIA_VOICE_ID = "a0e99841-438c-4a64-b679-ae501e7d6091"

# env var → settings field
ENV_OVERRIDES = {
    "GEMINI_API_KEY": "gemini_api_key",
    "CARTESIA_API_KEY": "cartesia_api_key",
    "WHISPER_CPP_PATH": "whisper_binary_path",
    "WHISPER_MODEL_PATH": "whisper_model_path",
    "HOLOSELF_DB_PATH": "db_path",
}


class SettingsError(Exception):
    pass


class AppSettings(BaseModel):
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    cartesia_api_key: str = ""
    cartesia_voice_id: str = DEFAULT_CARTESIA_VOICE_ID
    cartesia_model_id: str = "sonic-2"
    whisper_binary_path: Optional[str] = None
    whisper_model_path: Optional[str] = None
    whisper_language: str = "pt"
    db_path: Optional[str] = None
    skin_type: int = 4
    latitude: float = 38.7223
    longitude: float = -9.1393
    timezone: str = "WET"
    # hour to start the sleep protocol (02:00)
    sleep_anchor_hour: int = 2
    llm_timeout_seconds: float = 30.0
    voice_transcript_window_seconds: int = 30

    @property
    def gemini_configured(self) -> bool:
        return bool(self.gemini_api_key)

    @property
    def cartesia_configured(self) -> bool:
        return bool(self.cartesia_api_key)

    def database_path(self) -> Path:
        if self.db_path:
            return Path(self.db_path)
        return DATA_DIR / "holoself.db"


def settings_path(config_dir: Path | None = None) -> Path:
    return (config_dir or CONFIG_DIR) / "settings.json"


def apply_env_overrides(settings: AppSettings) -> AppSettings:
    updates = {}
    for env_name, field_name in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            updates[field_name] = value
    return settings.model_copy(update=updates) if updates else settings


def load_settings(config_dir: Path | None = None) -> AppSettings:
    """Load settings from disk (or defaults), then apply env overrides."""
    path = settings_path(config_dir)
    if path.exists():
        try:
            settings = AppSettings.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise SettingsError(f"Failed to read settings at {path}: {e}") from e
    else:
        settings = AppSettings()
    return apply_env_overrides(settings)


def save_settings(settings: AppSettings, config_dir: Path | None = None) -> Path:
    path = settings_path(config_dir)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(settings.model_dump(), indent=2), encoding="utf-8")
    except OSError as e:
        raise SettingsError(f"Failed to write settings: {e}") from e
    logger.info("Settings saved to %s", path)
    return path
