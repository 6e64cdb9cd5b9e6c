"""Thin client over the completion service with structured-output parsing."""

from __future__ import annotations

import asyncio
import json
import logging
import re
import time
from typing import Dict, List, Optional, Sequence, Type, TypeVar

from openai import APIError, OpenAI
from pydantic import BaseModel, ValidationError

from app.config.openai_client import COMPLETION_MODEL
from app.schemas import PerformanceScores, normalize_hashtags
from app.services.business_profiles import BusinessProfile
from app.services.prompt_builder import (
    build_analysis_prompt,
    build_hashtag_prompt,
    build_variation_prompt,
)

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

CODE_FENCE_PATTERN = re.compile(r"```(json)?(.*?)```", re.DOTALL | re.IGNORECASE)
LIST_MARKER_PATTERN = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s*")

GENERIC_HASHTAGS = (
    "smallbusiness",
    "shoplocal",
    "hawaii",
    "foodie",
    "fresh",
    "local",
    "authentic",
    "supportlocal",
)


class GenerationFailed(RuntimeError):
    """Raised when a primary completion call errors or returns unusable output."""


class CompletionServiceUnavailable(GenerationFailed):
    """Raised when no completion client has been configured."""


class GenerationClient:
    """Stateless wrapper issuing one completion request per logical operation."""

    def __init__(self, client: Optional[OpenAI], *, model: str = COMPLETION_MODEL):
        self._client = client
        self.model = model

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    def _request_completion(
        self,
        messages: Sequence[Dict[str, str]],
        *,
        json_mode: bool,
        temperature: float,
        max_tokens: int,
    ) -> str:
        kwargs = {
            "model": self.model,
            "messages": list(messages),
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        start = time.monotonic()
        completion = self._client.chat.completions.create(**kwargs)
        logger.debug(
            "Completion call succeeded",
            extra={
                "model": self.model,
                "json_mode": json_mode,
                "duration_ms": round((time.monotonic() - start) * 1000, 2),
            },
        )
        if not completion.choices:
            return ""
        return completion.choices[0].message.content or ""

    async def _complete(
        self,
        prompt: str,
        *,
        system_prompt: Optional[str] = None,
        json_mode: bool = False,
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> str:
        if self._client is None:
            raise CompletionServiceUnavailable("Completion service is not configured.")
        messages: List[Dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        try:
            return await asyncio.to_thread(
                self._request_completion,
                messages,
                json_mode=json_mode,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except APIError as exc:
            raise GenerationFailed(f"Completion service error: {exc}") from exc

    async def generate(
        self,
        prompt: str,
        schema: Type[SchemaT],
        *,
        system_prompt: Optional[str] = None,
        temperature: float = 0.8,
        max_tokens: int = 1000,
    ) -> SchemaT:
        """Request JSON-mode output and validate it against ``schema``."""

        raw = await self._complete(
            prompt,
            system_prompt=system_prompt,
            json_mode=True,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return parse_structured(raw, schema)

    async def analyze(self, text: str, platform: str) -> PerformanceScores:
        return await self.generate(
            build_analysis_prompt(text, platform),
            PerformanceScores,
            temperature=0.3,
            max_tokens=500,
        )

    async def variations(self, text: str, platforms: Sequence[str]) -> Dict[str, str]:
        """Adapt ``text`` for each platform; failed platforms keep the original text."""

        async def _variation(platform: str) -> str:
            try:
                adapted = await self._complete(
                    build_variation_prompt(text, platform),
                    temperature=0.7,
                    max_tokens=300,
                )
            except GenerationFailed as exc:
                logger.warning("Failed to generate %s variation: %s", platform, exc)
                return text
            adapted = _strip_wrapping_quotes(adapted)
            if not adapted:
                logger.warning("Empty %s variation returned, keeping original text", platform)
                return text
            return adapted

        results = await asyncio.gather(*(_variation(platform) for platform in platforms))
        return dict(zip(platforms, results))

    async def hashtags(
        self,
        text: str,
        platform: str = "instagram",
        profile: Optional[BusinessProfile] = None,
    ) -> List[str]:
        """Return up to 15 hashtags (without ``#``), falling back to a fixed set."""

        fallback = list(profile.fallback_hashtags) if profile is not None else list(GENERIC_HASHTAGS)
        try:
            raw = await self._complete(
                build_hashtag_prompt(text, platform, profile),
                temperature=0.6,
                max_tokens=200,
            )
        except GenerationFailed as exc:
            logger.warning("Hashtag generation failed for %s: %s", platform, exc)
            return fallback
        tags = parse_hashtag_lines(raw)
        if not tags:
            logger.warning("Hashtag generation returned no usable tags for %s", platform)
            return fallback
        return tags


def parse_structured(raw: str, schema: Type[SchemaT]) -> SchemaT:
    """Parse a JSON-mode completion body and validate it against ``schema``."""

    candidate = _extract_first_json_object(_strip_code_fences(raw))
    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError as exc:
        preview = _preview_text(candidate)
        logger.warning("Completion JSON parsing failed. preview=%s", preview)
        raise GenerationFailed(f"Completion returned invalid JSON: {preview}") from exc
    if not isinstance(payload, dict):
        raise GenerationFailed("Completion JSON is not an object.")
    try:
        return schema.model_validate(payload)
    except ValidationError as exc:
        logger.warning("Completion JSON failed %s validation: %s", schema.__name__, exc)
        raise GenerationFailed(f"Completion JSON does not match {schema.__name__}: {exc}") from exc
    except (ValueError, ArithmeticError) as exc:
        logger.warning("Completion JSON could not be coerced into %s: %s", schema.__name__, exc)
        raise GenerationFailed(f"Completion JSON has unusable values for {schema.__name__}: {exc}") from exc


def parse_hashtag_lines(raw: str) -> List[str]:
    tags = []
    for line in (raw or "").splitlines():
        cleaned = LIST_MARKER_PATTERN.sub("", line).strip()
        if not cleaned or cleaned.endswith(":"):
            continue
        tags.extend(cleaned.replace(",", " ").split())
    return normalize_hashtags(tags)


def _strip_code_fences(raw_text: str) -> str:
    if not raw_text or not raw_text.strip():
        raise GenerationFailed("Completion service returned an empty response.")
    text = raw_text.strip()
    # A bare object is left alone; fences inside its strings belong to the content.
    if text.startswith("{"):
        return text
    match = CODE_FENCE_PATTERN.search(text)
    if match:
        text = match.group(2).strip()
    if text.lower().startswith("json"):
        text = text[4:].lstrip()
    return text


def _extract_first_json_object(text: str) -> str:
    """Best-effort extraction of the first balanced JSON object in the text."""

    start = text.find("{")
    if start == -1:
        raise GenerationFailed("No JSON object found in completion: " + _preview_text(text))

    depth = 0
    in_string = False
    escape = False
    for idx in range(start, len(text)):
        char = text[idx]
        if in_string:
            if escape:
                escape = False
            elif char == "\\":
                escape = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : idx + 1]

    raise GenerationFailed("Completion JSON is truncated: " + _preview_text(text))


def _strip_wrapping_quotes(text: str) -> str:
    cleaned = (text or "").strip()
    if len(cleaned) >= 2 and cleaned[0] == cleaned[-1] and cleaned[0] in ('"', "'"):
        cleaned = cleaned[1:-1].strip()
    return cleaned


def _preview_text(text: str, limit: int = 280) -> str:
    safe = (text or "").replace("\n", " ").strip()
    if len(safe) <= limit:
        return safe
    return safe[: limit - 3] + "..."


__all__ = [
    "CompletionServiceUnavailable",
    "GENERIC_HASHTAGS",
    "GenerationClient",
    "GenerationFailed",
    "parse_hashtag_lines",
    "parse_structured",
]
