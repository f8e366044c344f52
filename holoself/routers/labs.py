import asyncio
import logging
from fastapi import APIRouter, Depends, HTTPException

from holoself.dependencies import get_llm, get_store
from holoself.schemas.health import LabResult
from holoself.schemas.labs import ImportRequest, OcrRequest, OcrResponse
from holoself.services.gemini import OCRError

router = APIRouter()
logger = logging.getLogger("holoself-server")


@router.post("/labs")
async def add_lab_result(lab: LabResult, store=Depends(get_store)):
    try:
        lab_id = await asyncio.to_thread(store.insert_lab_result, lab)
        return {"id": lab_id}
    except Exception as e:
        logger.error(f"Error saving lab result {lab.marker}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/labs/import")
async def import_lab_results(request: ImportRequest, store=Depends(get_store)):
    """Store the markers of an already-parsed lab report."""
    try:
        ids = await asyncio.to_thread(store.import_ocr_result, request.result, request.pdf_source)
        return {"imported_ids": ids}
    except Exception as e:
        logger.error(f"Error importing lab results: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/labs/ocr", response_model=OcrResponse)
async def ocr_clinical_pdf(request: OcrRequest, llm=Depends(get_llm), store=Depends(get_store)):
    """OCR a clinical analysis PDF via Gemini, optionally saving the markers."""
    try:
        result = await llm.ocr_clinical_pdf(request.file_path)
        ids = []
        if request.persist:
            ids = await asyncio.to_thread(store.import_ocr_result, result, request.file_path)
        return OcrResponse(result=result, imported_ids=ids)
    except OCRError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error running OCR on {request.file_path}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))
