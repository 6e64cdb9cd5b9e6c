"""Supabase-backed storage for generated artifacts, scoped by business."""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar, Union

from fastapi import HTTPException
from httpx import HTTPError as HttpxError
from postgrest import APIError as PostgrestAPIError
from supabase import Client

from app.config.supabase_client import (
    AI_INSIGHTS_TABLE,
    GENERATED_CONTENT_TABLE,
    SUPABASE_URL,
    get_supabase_client,
)

logger = logging.getLogger(__name__)
T = TypeVar("T")

ArtifactId = Union[int, str]
DEFAULT_LIST_LIMIT = 100


class SupabaseUnreachable(RuntimeError):
    """Raised when Supabase cannot be reached after the allowed attempts."""


def _retry_supabase_call(
    operation: Callable[[], T],
    *,
    retries: int = 2,
    backoff_seconds: Sequence[float] = (0.2, 0.5, 1.0),
    label: str,
) -> T:
    """Run a Supabase call with a short retry/backoff strategy on transport errors."""

    attempts = retries + 1
    for attempt in range(1, attempts + 1):
        start = time.monotonic()
        try:
            result = operation()
            logger.debug(
                "Supabase call succeeded",
                extra={
                    "label": label,
                    "duration_ms": round((time.monotonic() - start) * 1000, 2),
                    "supabase_url": SUPABASE_URL,
                },
            )
            return result
        except HttpxError as exc:
            logger.warning(
                "Supabase call failed",
                extra={
                    "label": label,
                    "attempt": attempt,
                    "duration_ms": round((time.monotonic() - start) * 1000, 2),
                    "supabase_url": SUPABASE_URL,
                    "error": str(exc),
                },
            )
            if attempt >= attempts:
                raise SupabaseUnreachable("Supabase unreachable.") from exc
            time.sleep(backoff_seconds[min(attempt - 1, len(backoff_seconds) - 1)])
    raise SupabaseUnreachable("Supabase unreachable.")


def postgrest_status(exc: PostgrestAPIError) -> int:
    """Best effort extraction of an HTTP status code from the API error."""

    try:
        return int(exc.code) if exc.code else 502
    except (TypeError, ValueError):
        return 502


def raise_postgrest_error(exc: PostgrestAPIError, *, context: str) -> None:
    """Map PostgREST errors to HTTP exceptions with logging."""

    status_code = postgrest_status(exc)
    detail = exc.message or "Error while communicating with Supabase."
    logger.error("%s failed (%s): %s", context, status_code, detail)
    if status_code in (401, 403):
        raise HTTPException(status_code=status_code, detail="Access to the artifact store was denied.") from exc
    if status_code == 404:
        raise HTTPException(status_code=404, detail="Resource not found.") from exc
    raise HTTPException(status_code=502, detail="Error while communicating with Supabase.") from exc


class SupabaseArtifactStore:
    """Reads and writes one artifact table; every query filters on ``business_id``."""

    def __init__(
        self,
        table: str,
        *,
        client_factory: Callable[[], Optional[Client]] = get_supabase_client,
    ):
        self.table = table
        self._client_factory = client_factory

    def _client(self) -> Client:
        client = self._client_factory()
        if client is None:
            raise HTTPException(status_code=503, detail="Supabase is not configured.")
        return client

    async def _run(self, operation: Callable[[], T], *, context: str, retries: int) -> T:
        try:
            return await asyncio.to_thread(_retry_supabase_call, operation, retries=retries, label=context)
        except PostgrestAPIError as exc:
            raise_postgrest_error(exc, context=context)
        except SupabaseUnreachable as exc:
            raise HTTPException(status_code=503, detail="Supabase is temporarily unreachable.") from exc

    async def save(self, business_id: str, values: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a row tagged with ``business_id``; the database assigns the id."""

        row = dict(values)
        row["business_id"] = business_id
        row["created_at"] = datetime.now(timezone.utc).isoformat()
        client = self._client()

        def _request() -> Dict[str, Any]:
            response = client.table(self.table).insert(row).execute()
            if not response.data:
                raise HTTPException(status_code=502, detail="Artifact could not be stored.")
            return response.data[0]

        # Inserts are not retried to avoid duplicate rows.
        return await self._run(_request, context=f"{self.table} insert", retries=0)

    async def list(self, business_id: str, *, limit: int = DEFAULT_LIST_LIMIT) -> List[Dict[str, Any]]:
        """Return the business's rows, newest first."""

        client = self._client()

        def _request() -> List[Dict[str, Any]]:
            response = (
                client.table(self.table)
                .select("*")
                .eq("business_id", business_id)
                .order("created_at", desc=True)
                .order("id", desc=True)
                .limit(limit)
                .execute()
            )
            return response.data or []

        return await self._run(_request, context=f"{self.table} list", retries=2)

    async def get(self, business_id: str, artifact_id: ArtifactId) -> Optional[Dict[str, Any]]:
        client = self._client()

        def _request() -> List[Dict[str, Any]]:
            response = (
                client.table(self.table)
                .select("*")
                .eq("business_id", business_id)
                .eq("id", str(artifact_id))
                .limit(1)
                .execute()
            )
            return response.data or []

        rows = await self._run(_request, context=f"{self.table} get", retries=2)
        return rows[0] if rows else None

    async def delete(self, business_id: str, artifact_id: ArtifactId) -> bool:
        client = self._client()

        def _request() -> List[Dict[str, Any]]:
            response = (
                client.table(self.table)
                .delete()
                .eq("business_id", business_id)
                .eq("id", str(artifact_id))
                .execute()
            )
            return response.data or []

        deleted = await self._run(_request, context=f"{self.table} delete", retries=0)
        return bool(deleted)


def content_store() -> SupabaseArtifactStore:
    return SupabaseArtifactStore(GENERATED_CONTENT_TABLE)


def insight_store() -> SupabaseArtifactStore:
    return SupabaseArtifactStore(AI_INSIGHTS_TABLE)


__all__ = [
    "SupabaseArtifactStore",
    "SupabaseUnreachable",
    "content_store",
    "insight_store",
    "raise_postgrest_error",
]
