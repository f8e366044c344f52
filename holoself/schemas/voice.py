from pydantic import BaseModel

from holoself.schemas.health import AgentMessage


class SpeakRequest(BaseModel):
    text: str


class TranscribeRequest(BaseModel):
    audio_path: str


class TranscriptResponse(BaseModel):
    transcript: str


class VoiceCommandResponse(BaseModel):
    transcript: str
    message: AgentMessage
