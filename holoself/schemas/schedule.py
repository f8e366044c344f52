from pydantic import BaseModel, Field
from typing import List

from holoself.schemas.health import ScheduledExam


class SaveExamsRequest(BaseModel):
    exams: List[ScheduledExam]
    skip_duplicates: bool = True


class SaveExamsResponse(BaseModel):
    ids: List[int] = Field(default_factory=list)
    skipped: int = 0
