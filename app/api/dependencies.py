"""FastAPI dependencies wiring services to their collaborators."""

from __future__ import annotations

from app.config.openai_client import get_completion_client
from app.services.artifact_store import SupabaseArtifactStore, content_store, insight_store
from app.services.generation_client import GenerationClient
from app.services.notifications import EventBroadcaster, broadcaster


async def get_generation_client() -> GenerationClient:
    """Client may be unconfigured; primary endpoints check before calling it."""
    return GenerationClient(get_completion_client())


async def get_content_store() -> SupabaseArtifactStore:
    return content_store()


async def get_insight_store() -> SupabaseArtifactStore:
    return insight_store()


async def get_event_broadcaster() -> EventBroadcaster:
    return broadcaster


__all__ = [
    "get_content_store",
    "get_event_broadcaster",
    "get_generation_client",
    "get_insight_store",
]
