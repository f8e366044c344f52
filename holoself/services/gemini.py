"""
Gemini Bridge — short text generation and clinical-PDF OCR.

The client is created lazily from ``AppSettings.gemini_api_key``; without a
key the bridge reports itself unconfigured and ``generate`` returns None so
callers fall back to their canned text.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from holoself.schemas.health import OcrResult
from holoself.services.llm_utils import llm_generate, strip_code_fences
from holoself.settings import AppSettings

logger = logging.getLogger("holoself.services.gemini")

MAX_PDF_BYTES = 50_000_000

OCR_PROMPT = """\
You are a clinical lab results parser. Extract ALL health markers from this clinical analysis PDF.

Return a JSON object with this exact structure:
{
  "patient_name": "string or null",
  "date": "YYYY-MM-DD or null",
  "lab": "laboratory name or null",
  "markers": [
    {
      "marker": "Vitamin D",
      "value": 25.3,
      "unit": "ng/mL",
      "reference_range": "30-100",
      "status": "low"
    }
  ]
}

Focus especially on: Vitamin D, Zinc, Copper, Cortisol, TSH, T3, T4, ANA, Ferritin, B12, Iron, Hemoglobin.
Only return valid JSON, no markdown.\
"""


class OCRError(Exception):
    pass


class GeminiBridge:
    """
    Thin async wrapper over ``google.genai``.

    Usage:
        bridge = GeminiBridge(settings)
        text = await bridge.generate(prompt, max_tokens=120, temperature=0.3)
    """

    def __init__(self, settings: AppSettings, client=None) -> None:
        self._settings = settings
        self._client = client
        self._model_name = settings.gemini_model

    @property
    def configured(self) -> bool:
        return self._client is not None or self._settings.gemini_configured

    @property
    def client(self):
        if self._client is None and self._settings.gemini_configured:
            try:
                from google import genai
                self._client = genai.Client(api_key=self._settings.gemini_api_key)
            except Exception as exc:
                logger.error("Failed to create Gemini client: %s", exc)
        return self._client

    async def generate(
        self,
        prompt: str,
        max_tokens: int = 120,
        temperature: float = 0.3,
        timeout: Optional[float] = None,
    ) -> str | None:
        """Short free-text completion; None when unconfigured, failed or timed out."""
        client = self.client
        if client is None:
            return None

        from google.genai import types

        text = await llm_generate(
            client,
            self._model_name,
            prompt,
            config=types.GenerateContentConfig(
                temperature=temperature,
                max_output_tokens=max_tokens,
            ),
            max_retries=0,
            timeout=timeout or self._settings.llm_timeout_seconds,
        )
        return text.strip() if text else None

    async def ocr_clinical_pdf(self, file_path: str) -> OcrResult:
        """Extract structured lab markers from a clinical analysis PDF."""
        pdf_bytes = read_clinical_pdf(file_path)

        client = self.client
        if client is None:
            raise OCRError("GEMINI_API_KEY not set. Configure in settings.")

        from google.genai import types

        text = await llm_generate(
            client,
            self._model_name,
            [
                OCR_PROMPT,
                types.Part.from_bytes(data=pdf_bytes, mime_type="application/pdf"),
            ],
            config=types.GenerateContentConfig(
                temperature=0.1,
                max_output_tokens=4096,
            ),
            max_retries=1,
            timeout=max(self._settings.llm_timeout_seconds, 60.0),
        )
        if text is None:
            raise OCRError("Gemini returned no text for the PDF.")
        return parse_ocr_response(text)


def read_clinical_pdf(file_path: str) -> bytes:
    path = Path(file_path)
    if not path.exists():
        raise OCRError(f"File not found: {file_path}")
    try:
        canonical = path.resolve(strict=True)
    except OSError as e:
        raise OCRError(f"Invalid file path: {e}") from e

    if canonical.suffix.lower() != ".pdf":
        raise OCRError("Only PDF files are accepted.")

    pdf_bytes = canonical.read_bytes()
    if len(pdf_bytes) > MAX_PDF_BYTES:
        raise OCRError("PDF too large (max 50MB).")
    return pdf_bytes


def parse_ocr_response(text: str) -> OcrResult:
    cleaned = strip_code_fences(text)
    try:
        return OcrResult.model_validate(json.loads(cleaned))
    except (json.JSONDecodeError, ValidationError) as e:
        raise OCRError(f"Failed to parse clinical data: {e}. Raw: {text[:500]}") from e
