import asyncio
import logging
from fastapi import APIRouter, Depends, HTTPException

from holoself import dependencies
from holoself.settings import AppSettings, SettingsError, save_settings

router = APIRouter()
logger = logging.getLogger("holoself-server")


@router.get("/settings", response_model=AppSettings)
async def get_settings(settings=Depends(dependencies.get_settings)):
    return settings


@router.put("/settings", response_model=AppSettings)
async def update_settings(settings: AppSettings):
    """Persist settings and rebuild the collaborators that depend on them."""
    try:
        await asyncio.to_thread(save_settings, settings)
    except SettingsError as e:
        logger.error(f"Error saving settings: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))
    dependencies.reload_settings(settings)
    return settings
