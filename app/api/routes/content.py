"""Content generation, listing, and lenient content tooling endpoints."""

from __future__ import annotations

import logging
from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, Response

from app.api.dependencies import (
    get_content_store,
    get_event_broadcaster,
    get_generation_client,
)
from app.schemas import (
    AnalyzeRequest,
    ContentRequest,
    GeneratedContentRecord,
    HashtagsRequest,
    HashtagsResponse,
    PerformanceScores,
    VariationsRequest,
)
from app.security.guards import generation_rate_limit
from app.services import content_analyzer, content_service
from app.services.artifact_store import SupabaseArtifactStore
from app.services.business_profiles import BusinessNotFound, resolve_business
from app.services.content_service import ArtifactNotFound, ContentValidationError
from app.services.generation_client import (
    CompletionServiceUnavailable,
    GenerationClient,
    GenerationFailed,
)
from app.services.notifications import EventBroadcaster

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/content/analyze", response_model=PerformanceScores)
async def analyze_content_endpoint(
    payload: AnalyzeRequest,
    generator: GenerationClient = Depends(get_generation_client),
) -> PerformanceScores:
    return await content_analyzer.score(payload.content, payload.platform, generator)


@router.post("/content/variations", response_model=Dict[str, str])
async def content_variations_endpoint(
    payload: VariationsRequest,
    generator: GenerationClient = Depends(get_generation_client),
) -> Dict[str, str]:
    return await generator.variations(payload.content, payload.platforms)


@router.post("/content/hashtags", response_model=HashtagsResponse)
async def content_hashtags_endpoint(
    payload: HashtagsRequest,
    generator: GenerationClient = Depends(get_generation_client),
) -> HashtagsResponse:
    profile = None
    if payload.business_id:
        try:
            profile = resolve_business(payload.business_id)
        except BusinessNotFound as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
    tags = await generator.hashtags(payload.content, payload.platform, profile)
    return HashtagsResponse(hashtags=tags)


@router.post(
    "/{business_id}/content/generate",
    status_code=201,
    response_model=GeneratedContentRecord,
    dependencies=[Depends(generation_rate_limit("content-generate"))],
)
async def generate_content_endpoint(
    business_id: str,
    payload: ContentRequest,
    generator: GenerationClient = Depends(get_generation_client),
    store: SupabaseArtifactStore = Depends(get_content_store),
    events: EventBroadcaster = Depends(get_event_broadcaster),
) -> GeneratedContentRecord:
    try:
        return await content_service.generate_content(
            business_id,
            payload,
            generator=generator,
            store=store,
            broadcaster=events,
        )
    except BusinessNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ContentValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except CompletionServiceUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except GenerationFailed as exc:
        logger.error("Content generation failed for %s: %s", business_id, exc, exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error generating content: {exc}") from exc


@router.get("/{business_id}/content", response_model=List[GeneratedContentRecord])
async def list_content_endpoint(
    business_id: str,
    store: SupabaseArtifactStore = Depends(get_content_store),
) -> List[GeneratedContentRecord]:
    try:
        return await content_service.list_content(business_id, store=store)
    except BusinessNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.get("/{business_id}/content/{content_id}", response_model=GeneratedContentRecord)
async def get_content_endpoint(
    business_id: str,
    content_id: str,
    store: SupabaseArtifactStore = Depends(get_content_store),
) -> GeneratedContentRecord:
    try:
        return await content_service.get_content(business_id, content_id, store=store)
    except (BusinessNotFound, ArtifactNotFound) as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.delete("/{business_id}/content/{content_id}", status_code=204, response_class=Response)
async def delete_content_endpoint(
    business_id: str,
    content_id: str,
    store: SupabaseArtifactStore = Depends(get_content_store),
) -> Response:
    try:
        await content_service.delete_artifact(business_id, content_id, store=store)
    except (BusinessNotFound, ArtifactNotFound) as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=204)


__all__ = ["router"]
