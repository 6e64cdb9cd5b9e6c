"""Completion service client configuration."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from openai import OpenAI

load_dotenv()

COMPLETION_API_KEY = os.getenv("XAI_API_KEY") or os.getenv("OPENAI_API_KEY")
COMPLETION_BASE_URL = os.getenv("COMPLETION_BASE_URL", "https://api.x.ai/v1")
COMPLETION_MODEL = os.getenv("COMPLETION_MODEL", "grok-2-1212")
COMPLETION_TIMEOUT_SECONDS = float(os.getenv("COMPLETION_TIMEOUT_SECONDS", "60"))


@lru_cache(maxsize=1)
def get_completion_client() -> Optional[OpenAI]:
    """Instantiate the completion client if an API key is configured."""
    if not COMPLETION_API_KEY:
        return None
    return OpenAI(
        api_key=COMPLETION_API_KEY,
        base_url=COMPLETION_BASE_URL,
        timeout=COMPLETION_TIMEOUT_SECONDS,
    )


__all__ = [
    "get_completion_client",
    "COMPLETION_MODEL",
    "COMPLETION_BASE_URL",
]
