from pydantic import BaseModel


class SystemStatus(BaseModel):
    version: str
    db_connected: bool
    gemini_configured: bool
    voice_available: bool
    tts_configured: bool
    timezone: str
    uptime_seconds: int
