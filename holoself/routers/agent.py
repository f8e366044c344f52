import asyncio
import logging
from fastapi import APIRouter, Depends, HTTPException

from holoself.agents.health_agent import UnknownActionError
from holoself.dependencies import get_agent
from holoself.schemas.health import ActionRequest, ActionResult, AgentMessage, DailyStats

router = APIRouter()
logger = logging.getLogger("holoself-server")


@router.get("/agent/message", response_model=AgentMessage)
async def get_agent_message(agent=Depends(get_agent)):
    """The one message the assistant should show right now."""
    try:
        return await agent.get_message()
    except Exception as e:
        logger.error(f"Error selecting agent message: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/agent/action", response_model=ActionResult)
async def execute_agent_action(request: ActionRequest, agent=Depends(get_agent)):
    """Run a suggested action once the user confirmed it."""
    try:
        message = await asyncio.to_thread(agent.execute_action, request.action_type, request.payload)
        return ActionResult(message=message)
    except UnknownActionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error executing action {request.action_type}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/agent/daily-stats", response_model=DailyStats)
async def get_daily_stats(agent=Depends(get_agent)):
    try:
        return await asyncio.to_thread(agent.daily_stats)
    except Exception as e:
        logger.error(f"Error computing daily stats: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))
