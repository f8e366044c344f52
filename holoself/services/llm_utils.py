"""
LLM utility functions — retry wrapper with a hard timeout, and response
cleanup.

Used by the Gemini bridge for message phrasing and PDF OCR.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

logger = logging.getLogger("holoself.services.llm_utils")


def strip_code_fences(text: str) -> str:
    """Remove a leading ```json / ``` fence and a trailing ``` if present."""
    cleaned = text.strip()
    for prefix in ("```json", "```"):
        if cleaned.startswith(prefix):
            cleaned = cleaned[len(prefix):]
            break
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


async def llm_generate(
    client: Any,
    model: str,
    contents: Any,
    config: Any = None,
    max_retries: int = 1,
    timeout: float = 30.0,
) -> str | None:
    """
    Call the LLM with retry and exponential backoff.

    - Each attempt is bounded by ``timeout`` seconds
    - Backoff: 0.5s, 1.0s, 2.0s ...
    - Callers keep a deterministic fallback for total failure

    Returns the response text, or None if every attempt failed.
    """
    for attempt in range(max_retries + 1):
        try:
            response = await asyncio.wait_for(
                client.aio.models.generate_content(
                    model=model,
                    contents=contents,
                    config=config,
                ),
                timeout=timeout,
            )
            text = response.text
            if isinstance(text, str) and text.strip():
                return text
            logger.warning("LLM returned empty response (attempt %d)", attempt + 1)
        except asyncio.TimeoutError:
            logger.warning(
                "LLM call timed out after %.1fs (attempt %d/%d)",
                timeout, attempt + 1, max_retries + 1,
            )
        except Exception as exc:
            logger.warning(
                "LLM call failed (attempt %d/%d): %s",
                attempt + 1, max_retries + 1, exc,
            )

        if attempt < max_retries:
            await asyncio.sleep(0.5 * (2 ** attempt))

    logger.error("LLM call exhausted all %d attempts — returning None", max_retries + 1)
    return None
