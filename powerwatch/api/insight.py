"""
POST /api/ai-insight: forward a prompt to the text-generation capability.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

import logging

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from powerwatch.api.deps import Insight
from powerwatch.exceptions import InsightUnavailable

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["insight"])


class InsightIn(BaseModel):
    prompt: str | None = None


class InsightOut(BaseModel):
    insight: str


@router.post("/ai-insight", response_model=InsightOut)
async def ai_insight(payload: InsightIn, generator: Insight) -> InsightOut:
    """Return generated text for ``prompt``.

    Raises:
        HTTPException: 400 if the prompt is missing or blank.
        HTTPException: 503 if no text-generation service is configured.
        HTTPException: 502 if the upstream call fails.
    """
    if not payload.prompt or not payload.prompt.strip():
        raise HTTPException(status_code=400, detail="Prompt is required.")
    if generator is None:
        raise HTTPException(
            status_code=503, detail="AI insight service is not configured."
        )

    try:
        text = await generator.generate(payload.prompt)
    except InsightUnavailable as exc:
        logger.warning("AI insight failed: %s", exc)
        raise HTTPException(
            status_code=502, detail="Failed to fetch AI insight."
        ) from exc
    return InsightOut(insight=text)
