"""
Shared fixtures and mocks for the HoloSelf test suite.
Storage is an in-memory SQLite store; Gemini, Cartesia and whisper.cpp are
mocked so tests run fast and offline.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from holoself.settings import AppSettings
from holoself.storage.database import HealthStore


@pytest.fixture
def settings():
    return AppSettings(gemini_api_key="", cartesia_api_key="", db_path=":memory:")


@pytest.fixture
def store():
    """Fresh in-memory store with the schema applied."""
    s = HealthStore(":memory:")
    s.run_migrations()
    yield s
    s.close()


@pytest.fixture
def fake_llm():
    """A configured LLM bridge whose generate() returns a fixed phrase."""
    llm = MagicMock()
    llm.configured = True
    llm.generate = AsyncMock(return_value="Mensagem reformulada pelo assistente.")
    llm.ocr_clinical_pdf = AsyncMock()
    return llm


@pytest.fixture
def fake_voice():
    voice = MagicMock()
    voice.synthesize = AsyncMock(return_value=b"RIFF....WAVEfmt ")
    voice.transcribe = AsyncMock(return_value="tomei Winfit")
    voice.process_voice_command = AsyncMock()
    voice.save_temp_audio = MagicMock(return_value="/tmp/holoself/voice_test.wav")
    voice.native_tts.is_available.return_value = False
    voice.stt.status.return_value = MagicMock(binary_found=False, model_found=False)
    return voice


@pytest.fixture
def test_client(settings, store, fake_llm, fake_voice):
    """FastAPI TestClient wired to the in-memory store and mocked services."""
    from fastapi.testclient import TestClient
    from holoself import dependencies
    from holoself.agents.health_agent import HealthAgent
    from holoself.app import app

    agent = HealthAgent(store, llm=None, settings=settings)
    app.dependency_overrides[dependencies.get_settings] = lambda: settings
    app.dependency_overrides[dependencies.get_store] = lambda: store
    app.dependency_overrides[dependencies.get_llm] = lambda: fake_llm
    app.dependency_overrides[dependencies.get_agent] = lambda: agent
    app.dependency_overrides[dependencies.get_voice_pipeline] = lambda: fake_voice
    yield TestClient(app)
    app.dependency_overrides.clear()
