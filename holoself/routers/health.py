from fastapi import APIRouter

from holoself.settings import PORT

router = APIRouter()


@router.get("/")
async def root():
    return {
        "status": "HoloSelf Health Agent is Running",
        "features": ["supplements", "vitals", "labs", "agent", "scheduler", "voice", "vitamin_d"],
        "endpoints": {
            "supplements": "/supplements",
            "vitals": "/vitals",
            "timeline": "/timeline",
            "labs": "/labs",
            "agent_message": "/agent/message",
            "agent_action": "/agent/action",
            "daily_stats": "/agent/daily-stats",
            "predicted_exams": "/schedule/predicted",
            "upcoming_exams": "/schedule/upcoming",
            "voice_command": "/voice/command",
            "speak": "/voice/speak",
            "vitamin_d": "/vitamin-d/recommendation",
            "settings": "/settings",
            "system": "/system/status"
        }
    }


@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "holoself-agent",
        "port": PORT
    }
