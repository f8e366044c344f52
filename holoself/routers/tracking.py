import asyncio
import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query

from holoself.dependencies import get_store
from holoself.schemas.health import HealthTimelineEntry, SupplementEntry, VitalEntry

router = APIRouter()
logger = logging.getLogger("holoself-server")


@router.post("/supplements")
async def log_supplement(entry: SupplementEntry, store=Depends(get_store)):
    """Log a supplement intake."""
    try:
        entry_id = await asyncio.to_thread(store.insert_supplement, entry)
        return {"id": entry_id}
    except Exception as e:
        logger.error(f"Error logging supplement {entry.name}: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to log supplement: {str(e)}")


@router.get("/supplements", response_model=List[SupplementEntry])
async def get_supplement_log(
    date_from: str = Query(..., alias="from"),
    date_to: str = Query(..., alias="to"),
    store=Depends(get_store),
):
    """Supplement log for a date range, newest first."""
    try:
        return await asyncio.to_thread(store.get_supplements, date_from, date_to)
    except Exception as e:
        logger.error(f"Error reading supplement log: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/vitals")
async def log_vital(entry: VitalEntry, store=Depends(get_store)):
    """Log a vital sign measurement."""
    try:
        entry_id = await asyncio.to_thread(store.insert_vital, entry)
        return {"id": entry_id}
    except Exception as e:
        logger.error(f"Error logging vital {entry.vital_type}: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to log vital: {str(e)}")


@router.get("/vitals", response_model=List[VitalEntry])
async def get_vitals(
    date_from: str = Query(..., alias="from"),
    date_to: str = Query(..., alias="to"),
    store=Depends(get_store),
):
    try:
        return await asyncio.to_thread(store.get_vitals, date_from, date_to)
    except Exception as e:
        logger.error(f"Error reading vitals: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/timeline", response_model=List[HealthTimelineEntry])
async def get_health_timeline(
    date_from: str = Query(..., alias="from"),
    date_to: str = Query(..., alias="to"),
    store=Depends(get_store),
):
    """Unified supplements + vitals timeline."""
    try:
        return await asyncio.to_thread(store.get_health_timeline, date_from, date_to)
    except Exception as e:
        logger.error(f"Error reading health timeline: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))
