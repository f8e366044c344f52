import asyncio
import logging
import time
from fastapi import APIRouter, Depends

from holoself.dependencies import get_settings, get_store, get_voice_pipeline
from holoself.schemas.system import SystemStatus
from holoself.settings import VERSION

router = APIRouter()
logger = logging.getLogger("holoself-server")

_started_at = time.time()


@router.get("/system/status", response_model=SystemStatus)
async def system_status(
    settings=Depends(get_settings),
    store=Depends(get_store),
    voice=Depends(get_voice_pipeline),
):
    """Which collaborators are reachable right now."""
    db_connected = await asyncio.to_thread(store.ping)
    whisper = await asyncio.to_thread(voice.stt.status)
    return SystemStatus(
        version=VERSION,
        db_connected=db_connected,
        gemini_configured=settings.gemini_configured,
        voice_available=whisper.binary_found and whisper.model_found,
        tts_configured=settings.cartesia_configured or voice.native_tts.is_available(),
        timezone=settings.timezone,
        uptime_seconds=int(time.time() - _started_at),
    )
