import logging
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query

from holoself.core import vitamin_d
from holoself.dependencies import get_settings
from holoself.services.weather import (
    DEFAULT_LATITUDE,
    DEFAULT_LONGITUDE,
    WeatherError,
    get_current_uv_index,
)

router = APIRouter()
logger = logging.getLogger("holoself-server")


@router.get("/vitamin-d/recommendation", response_model=vitamin_d.VitaminDRecommendation)
async def get_recommendation(
    uv_index: float = Query(..., ge=0),
    month: Optional[int] = Query(None, ge=1, le=12),
    settings=Depends(get_settings),
):
    """Sun exposure and D3 dose for a UV index, using the profile's skin type and latitude."""
    return vitamin_d.calculate(
        uv_index,
        skin_type=settings.skin_type,
        latitude=settings.latitude,
        month=month or datetime.now().month,
    )


@router.get("/vitamin-d/uv-index")
async def get_uv_index(settings=Depends(get_settings)):
    latitude = settings.latitude if settings.latitude is not None else DEFAULT_LATITUDE
    longitude = settings.longitude if settings.longitude is not None else DEFAULT_LONGITUDE
    try:
        uv = await get_current_uv_index(latitude, longitude)
        return {"uv_index": uv, "latitude": latitude, "longitude": longitude}
    except WeatherError as e:
        logger.warning(f"UV index lookup failed: {str(e)}")
        raise HTTPException(status_code=502, detail=str(e))
