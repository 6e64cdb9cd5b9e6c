"""Content and insight generation workflows.

Primary operations are strict: validation happens before the completion call,
and nothing is persisted unless the call returns a usable artifact. The
push notification that follows a write is fire-and-forget.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List

from app.schemas import (
    CONTENT_TYPE_LABELS,
    AiInsightRecord,
    ContentCompletion,
    ContentRequest,
    GeneratedContentRecord,
    InsightCompletion,
    InsightRequest,
)
from app.services.artifact_store import ArtifactId, SupabaseArtifactStore
from app.services.business_profiles import resolve_business
from app.services.generation_client import CompletionServiceUnavailable, GenerationClient
from app.services.notifications import AI_INSIGHT_CREATED, CONTENT_CREATED, EventBroadcaster
from app.services.prompt_builder import (
    build_content_prompt,
    build_insight_prompt,
    content_system_prompt,
    insight_system_prompt,
    normalize_insight_kind,
    resolve_insight_template,
)

logger = logging.getLogger(__name__)


class ContentValidationError(ValueError):
    """Raised when a request is rejected before any external call."""


class ArtifactNotFound(LookupError):
    """Raised when an artifact does not exist for the requested business."""


def _ensure_configured(generator: GenerationClient) -> None:
    if not generator.is_configured:
        raise CompletionServiceUnavailable("Completion service is not configured.")


async def generate_content(
    business_id: str,
    request: ContentRequest,
    *,
    generator: GenerationClient,
    store: SupabaseArtifactStore,
    broadcaster: EventBroadcaster,
) -> GeneratedContentRecord:
    """Generate, persist, and announce a piece of marketing content."""

    profile = resolve_business(business_id)
    if not request.topic.strip():
        raise ContentValidationError("A topic is required to generate content.")
    _ensure_configured(generator)

    completion = await generator.generate(
        build_content_prompt(request, profile),
        ContentCompletion,
        system_prompt=content_system_prompt(profile),
        temperature=0.8,
        max_tokens=1000,
    )

    hashtags = completion.hashtags if request.include_hashtags else []
    if request.include_hashtags and not hashtags:
        hashtags = await generator.hashtags(completion.content, request.platform, profile)

    values = {
        "title": completion.title or f"{CONTENT_TYPE_LABELS[request.type]} for {request.topic}",
        "content": completion.content,
        "hashtags": hashtags,
        "word_count": completion.word_count,
        "estimated_read_time": completion.estimated_read_time,
        "seo_score": completion.seo_score,
        "engagement_score": completion.engagement_score,
        "virality_score": completion.virality_score,
        "sentiment_score": completion.sentiment_score,
        "type": request.type,
        "platform": request.platform,
        "tone": request.tone,
        "target_audience": request.target_audience or None,
        "call_to_action": request.call_to_action,
        "status": "draft",
    }
    row = await store.save(profile.id, values)
    record = GeneratedContentRecord.model_validate(row)
    logger.info("Generated %s content %s for %s", request.type, record.id, profile.id)
    broadcaster.notify(CONTENT_CREATED, record.model_dump(by_alias=True))
    return record


async def generate_insight(
    business_id: str,
    request: InsightRequest,
    *,
    generator: GenerationClient,
    store: SupabaseArtifactStore,
    broadcaster: EventBroadcaster,
) -> AiInsightRecord:
    """Run one analysis template for the business and persist the resulting insight."""

    profile = resolve_business(business_id)
    _ensure_configured(generator)
    template = resolve_insight_template(request.type)
    analysis_type = normalize_insight_kind(request.type) or template.key

    completion = await generator.generate(
        build_insight_prompt(request.type, profile, request.data),
        InsightCompletion,
        system_prompt=insight_system_prompt(template, profile),
        temperature=0.4,
        max_tokens=800,
    )

    metadata = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "model": generator.model,
        "analysis_type": analysis_type,
        "template": template.key,
        "recommendations": completion.recommendations,
    }
    if isinstance(request.data, dict) and request.data:
        metadata["request_data_keys"] = sorted(str(key) for key in request.data)

    values = {
        "title": completion.title or template.title,
        "content": completion.content,
        "type": analysis_type,
        "category": template.category,
        "priority": completion.priority,
        "actionable": completion.actionable,
        "metadata": metadata,
        "confidence": completion.confidence,
        "applied": False,
    }
    row = await store.save(profile.id, values)
    record = AiInsightRecord.model_validate(row)
    logger.info("Generated %s insight %s for %s", template.key, record.id, profile.id)
    broadcaster.notify(AI_INSIGHT_CREATED, record.model_dump(by_alias=True))
    return record


async def list_content(business_id: str, *, store: SupabaseArtifactStore) -> List[GeneratedContentRecord]:
    profile = resolve_business(business_id)
    rows = await store.list(profile.id)
    return [GeneratedContentRecord.model_validate(row) for row in rows]


async def list_insights(business_id: str, *, store: SupabaseArtifactStore) -> List[AiInsightRecord]:
    profile = resolve_business(business_id)
    rows = await store.list(profile.id)
    return [AiInsightRecord.model_validate(row) for row in rows]


async def get_content(
    business_id: str, content_id: ArtifactId, *, store: SupabaseArtifactStore
) -> GeneratedContentRecord:
    profile = resolve_business(business_id)
    row = await store.get(profile.id, content_id)
    if row is None:
        raise ArtifactNotFound(f"Content {content_id} not found for {profile.id}")
    return GeneratedContentRecord.model_validate(row)


async def get_insight(business_id: str, insight_id: ArtifactId, *, store: SupabaseArtifactStore) -> AiInsightRecord:
    profile = resolve_business(business_id)
    row = await store.get(profile.id, insight_id)
    if row is None:
        raise ArtifactNotFound(f"Insight {insight_id} not found for {profile.id}")
    return AiInsightRecord.model_validate(row)


async def delete_artifact(business_id: str, artifact_id: ArtifactId, *, store: SupabaseArtifactStore) -> None:
    profile = resolve_business(business_id)
    if not await store.delete(profile.id, artifact_id):
        raise ArtifactNotFound(f"Artifact {artifact_id} not found for {profile.id}")


__all__ = [
    "ArtifactNotFound",
    "ContentValidationError",
    "delete_artifact",
    "generate_content",
    "generate_insight",
    "get_content",
    "get_insight",
    "list_content",
    "list_insights",
]
