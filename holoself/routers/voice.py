import asyncio
import logging
from fastapi import APIRouter, Depends, HTTPException, Request, Response

from holoself.dependencies import get_agent, get_voice_pipeline
from holoself.schemas.voice import (
    SpeakRequest,
    TranscribeRequest,
    TranscriptResponse,
    VoiceCommandResponse,
)
from holoself.services.cartesia import TTSError
from holoself.services.whisper import TranscriptionError, WhisperStatus

router = APIRouter()
logger = logging.getLogger("holoself-server")


@router.post("/voice/speak")
async def speak(request: SpeakRequest, voice=Depends(get_voice_pipeline)):
    """Synthesize text to WAV audio."""
    if not request.text.strip():
        raise HTTPException(status_code=400, detail="Text is empty")
    try:
        audio = await voice.synthesize(request.text)
        return Response(content=audio, media_type="audio/wav")
    except TTSError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Error synthesizing speech: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/voice/speak-agent-message")
async def speak_agent_message(agent=Depends(get_agent), voice=Depends(get_voice_pipeline)):
    """Select the current agent message and read it aloud."""
    try:
        message = await agent.get_message()
        audio = await voice.synthesize(message.text)
        return Response(content=audio, media_type="audio/wav")
    except TTSError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Error speaking agent message: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/voice/command", response_model=VoiceCommandResponse)
async def voice_command(request: Request, agent=Depends(get_agent), voice=Depends(get_voice_pipeline)):
    """Raw WAV body in; transcript plus the agent's reply out."""
    audio = await request.body()
    if not audio:
        raise HTTPException(status_code=400, detail="No audio received")
    try:
        path = await asyncio.to_thread(voice.save_temp_audio, audio)
        transcript, message = await voice.process_voice_command(agent, path)
        return VoiceCommandResponse(transcript=transcript, message=message)
    except TranscriptionError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.error(f"Error processing voice command: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/voice/transcribe", response_model=TranscriptResponse)
async def transcribe(request: TranscribeRequest, voice=Depends(get_voice_pipeline)):
    try:
        transcript = await voice.transcribe(request.audio_path)
        return TranscriptResponse(transcript=transcript)
    except TranscriptionError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.error(f"Error transcribing {request.audio_path}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/voice/whisper-status", response_model=WhisperStatus)
async def whisper_status(voice=Depends(get_voice_pipeline)):
    return await asyncio.to_thread(voice.stt.status)
