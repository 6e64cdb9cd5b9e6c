"""Lenient performance scoring for generated content."""

from __future__ import annotations

import logging

from app.schemas import PerformanceScores
from app.services.generation_client import GenerationClient, GenerationFailed

logger = logging.getLogger(__name__)

FALLBACK_SUGGESTIONS = (
    "Add more visual elements",
    "Include a stronger call-to-action",
    "Use trending hashtags",
)


def fallback_scores() -> PerformanceScores:
    return PerformanceScores(
        engagement_prediction=50,
        virality_score=25,
        sentiment_score=75,
        suggestions=list(FALLBACK_SUGGESTIONS),
    )


async def score(content: str, platform: str, generator: GenerationClient) -> PerformanceScores:
    """Predict engagement, virality, and sentiment; never raises on service failure."""

    if not (content or "").strip():
        return fallback_scores()
    try:
        return await generator.analyze(content, platform)
    except GenerationFailed as exc:
        logger.warning("Content analysis failed for %s, using fallback scores: %s", platform, exc)
        return fallback_scores()


__all__ = ["FALLBACK_SUGGESTIONS", "fallback_scores", "score"]
