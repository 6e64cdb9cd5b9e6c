"""AI insight endpoints."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response

from app.api.dependencies import (
    get_event_broadcaster,
    get_generation_client,
    get_insight_store,
)
from app.schemas import AiInsightRecord, InsightRequest
from app.security.guards import generation_rate_limit
from app.services import content_service
from app.services.artifact_store import SupabaseArtifactStore
from app.services.business_profiles import BusinessNotFound
from app.services.content_service import ArtifactNotFound
from app.services.generation_client import (
    CompletionServiceUnavailable,
    GenerationClient,
    GenerationFailed,
)
from app.services.notifications import EventBroadcaster

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "/{business_id}/insights/analyze",
    status_code=201,
    response_model=AiInsightRecord,
    dependencies=[Depends(generation_rate_limit("insights-analyze"))],
)
async def analyze_insights_endpoint(
    business_id: str,
    payload: InsightRequest,
    generator: GenerationClient = Depends(get_generation_client),
    store: SupabaseArtifactStore = Depends(get_insight_store),
    events: EventBroadcaster = Depends(get_event_broadcaster),
) -> AiInsightRecord:
    try:
        return await content_service.generate_insight(
            business_id,
            payload,
            generator=generator,
            store=store,
            broadcaster=events,
        )
    except BusinessNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except CompletionServiceUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except GenerationFailed as exc:
        logger.error("Insight generation failed for %s: %s", business_id, exc, exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error generating insights: {exc}") from exc


@router.get("/{business_id}/insights", response_model=List[AiInsightRecord])
async def list_insights_endpoint(
    business_id: str,
    store: SupabaseArtifactStore = Depends(get_insight_store),
) -> List[AiInsightRecord]:
    try:
        return await content_service.list_insights(business_id, store=store)
    except BusinessNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.get("/{business_id}/insights/{insight_id}", response_model=AiInsightRecord)
async def get_insight_endpoint(
    business_id: str,
    insight_id: str,
    store: SupabaseArtifactStore = Depends(get_insight_store),
) -> AiInsightRecord:
    try:
        return await content_service.get_insight(business_id, insight_id, store=store)
    except (BusinessNotFound, ArtifactNotFound) as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.delete("/{business_id}/insights/{insight_id}", status_code=204, response_class=Response)
async def delete_insight_endpoint(
    business_id: str,
    insight_id: str,
    store: SupabaseArtifactStore = Depends(get_insight_store),
) -> Response:
    try:
        await content_service.delete_artifact(business_id, insight_id, store=store)
    except (BusinessNotFound, ArtifactNotFound) as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=204)


__all__ = ["router"]
