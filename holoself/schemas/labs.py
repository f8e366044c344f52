from pydantic import BaseModel, Field
from typing import List, Optional

from holoself.schemas.health import OcrResult


class OcrRequest(BaseModel):
    file_path: str
    persist: bool = False


class OcrResponse(BaseModel):
    result: OcrResult
    imported_ids: List[int] = Field(default_factory=list)


class ImportRequest(BaseModel):
    result: OcrResult
    pdf_source: Optional[str] = None
