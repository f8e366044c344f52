"""
Lazy-init shared dependencies used across multiple routers.

Routers receive these through ``Depends`` so tests can swap them with
``app.dependency_overrides``.
"""

import logging
import threading

from holoself.settings import AppSettings, load_settings

logger = logging.getLogger("holoself-server")

# Global singletons - initialized lazily
_settings = None
_store = None
_llm = None
_agent = None
_voice = None
_lock = threading.Lock()


def get_settings() -> AppSettings:
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def get_store():
    """Lazy initialization of the HealthStore (migrations applied on first use)."""
    global _store
    with _lock:
        if _store is None:
            from holoself.storage.database import HealthStore
            path = get_settings().database_path()
            logger.info("Initializing HealthStore at %s (lazy)...", path)
            store = HealthStore(path)
            store.run_migrations()
            _store = store
    return _store


def get_llm():
    global _llm
    if _llm is None:
        from holoself.services.gemini import GeminiBridge
        _llm = GeminiBridge(get_settings())
    return _llm


def get_agent():
    global _agent
    if _agent is None:
        from holoself.agents.health_agent import HealthAgent
        _agent = HealthAgent(get_store(), llm=get_llm(), settings=get_settings())
    return _agent


def get_voice_pipeline():
    global _voice
    if _voice is None:
        from holoself.agents.voice_pipeline import VoicePipeline
        _voice = VoicePipeline(get_settings())
    return _voice


def reload_settings(settings: AppSettings) -> None:
    """Swap settings and drop collaborators built from the old ones."""
    global _settings, _llm, _agent, _voice
    _settings = settings
    _llm = None
    _agent = None
    if _voice is not None:
        _voice.shutdown()
    _voice = None


def shutdown() -> None:
    global _store, _voice
    if _voice is not None:
        _voice.shutdown()
        _voice = None
    if _store is not None:
        _store.close()
        _store = None
