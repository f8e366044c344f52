"""
Health domain models — supplement log, vitals, lab results, exams and
agent messages.

These are the shapes stored by ``HealthStore`` and returned by the API.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class MessageCategory(str, Enum):
    SUPPLEMENT_REMINDER = "supplement_reminder"
    HEALTH_INSIGHT = "health_insight"
    SCHEDULE = "schedule"
    CALM_NUDGE = "calm_nudge"
    VOICE_RESPONSE = "voice_response"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ActionType(str, Enum):
    LOG_SUPPLEMENT = "log_supplement"
    SCHEDULE_EXAM = "schedule_exam"


# ── Persisted entries ──


class SupplementEntry(BaseModel):
    id: Optional[int] = None
    name: str
    dosage: str = ""
    taken_at: str  # ISO 8601 datetime
    category: str = "as_needed"  # morning | afternoon | night | as_needed
    notes: Optional[str] = None


class VitalEntry(BaseModel):
    id: Optional[int] = None
    vital_type: str  # heart_rate | hrv | sleep_score | stress_level | wpm | ...
    value: float
    unit: str
    recorded_at: str
    source: str = "manual"  # manual | wearable | webcam | agent


class LabResult(BaseModel):
    id: Optional[int] = None
    marker: str
    value: float
    unit: str
    reference_range: Optional[str] = None
    status: str = "normal"  # normal | low | high | critical
    lab_name: Optional[str] = None
    test_date: Optional[str] = None
    pdf_source: Optional[str] = None


class ScheduledExam(BaseModel):
    id: Optional[int] = None
    exam_type: str
    reason: str
    scheduled_date: str  # YYYY-MM-DD
    triggered_by: Optional[str] = None
    completed: bool = False


class HealthTimelineEntry(BaseModel):
    timestamp: str
    event_type: str  # "supplement" | "vital"
    label: str
    value: Optional[float] = None


class AgentMemoryEntry(BaseModel):
    id: Optional[int] = None
    content: str
    category: str
    created_at: Optional[str] = None


# ── Agent ──


class AgentAction(BaseModel):
    action_type: ActionType
    payload: dict[str, Any] = Field(default_factory=dict)


class AgentMessage(BaseModel):
    text: str
    category: MessageCategory
    priority: Priority
    action: Optional[AgentAction] = None


class ActionRequest(BaseModel):
    action_type: str
    payload: dict[str, Any] = Field(default_factory=dict)


class ActionResult(BaseModel):
    message: str


class DailyStats(BaseModel):
    date: str
    adherence_percent: int
    supplements_taken: int
    supplements_total: int
    voice_commands: int
    vitals_recorded: int
    pending_exams: int
    summary: str = ""


# ── OCR ──


class ClinicalResult(BaseModel):
    marker: str
    value: float
    unit: str
    reference_range: str = ""
    status: str = "normal"


class OcrResult(BaseModel):
    patient_name: Optional[str] = None
    date: Optional[str] = None
    lab: Optional[str] = None
    markers: list[ClinicalResult] = Field(default_factory=list)
    raw_text: Optional[str] = None
