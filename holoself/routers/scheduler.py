import asyncio
import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException

from holoself.dependencies import get_agent, get_store
from holoself.schemas.health import ScheduledExam
from holoself.schemas.schedule import SaveExamsRequest, SaveExamsResponse

router = APIRouter()
logger = logging.getLogger("holoself-server")


@router.get("/schedule/predicted", response_model=List[ScheduledExam])
async def get_predicted_schedule(agent=Depends(get_agent)):
    """Exams the active supplements and lab history call for. Nothing is saved."""
    try:
        return await asyncio.to_thread(agent.exam_schedule)
    except Exception as e:
        logger.error(f"Error generating exam schedule: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/schedule/exams", response_model=SaveExamsResponse)
async def save_scheduled_exams(request: SaveExamsRequest, agent=Depends(get_agent)):
    try:
        ids = await asyncio.to_thread(agent.save_exams, request.exams, request.skip_duplicates)
        return SaveExamsResponse(ids=ids, skipped=len(request.exams) - len(ids))
    except Exception as e:
        logger.error(f"Error saving exams: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/schedule/upcoming", response_model=List[ScheduledExam])
async def get_upcoming_exams(store=Depends(get_store)):
    try:
        return await asyncio.to_thread(store.upcoming_incomplete_exams)
    except Exception as e:
        logger.error(f"Error reading upcoming exams: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/schedule/exams/{exam_id}/complete")
async def complete_exam(exam_id: int, store=Depends(get_store)):
    try:
        if not await asyncio.to_thread(store.complete_exam, exam_id):
            raise HTTPException(status_code=404, detail=f"Exam {exam_id} not found")
        return {"id": exam_id, "completed": True}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error completing exam {exam_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))
