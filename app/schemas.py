from datetime import datetime
from math import isfinite
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

ContentType = Literal[
    "social_post",
    "email_campaign",
    "blog_post",
    "product_description",
    "menu_description",
]
Platform = Literal["instagram", "facebook", "twitter", "tiktok", "email", "website"]
Tone = Literal["friendly", "professional", "casual", "enthusiastic", "educational", "playful"]
InsightPriority = Literal["low", "medium", "high"]

CONTENT_TYPE_LABELS: Dict[str, str] = {
    "social_post": "Social Media Post",
    "email_campaign": "Email Campaign",
    "blog_post": "Blog Post",
    "product_description": "Product Description",
    "menu_description": "Menu Description",
}

DEFAULT_SEO_SCORE = 75.0
DEFAULT_INSIGHT_CONFIDENCE = 0.75
MAX_HASHTAGS = 15
MAX_SUGGESTIONS = 5


def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _dedupe(values: List[str]) -> List[str]:
    seen = set()
    result = []
    for value in values:
        key = value.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(value)
    return result


def clamp_score(value: Any, *, upper: float = 100.0) -> Optional[float]:
    """Coerce a loosely typed score into ``[0, upper]``; unusable values become None."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().rstrip("%").strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not isfinite(number):
        return None
    return round(min(max(number, 0.0), upper), 2)


def clamp_confidence(value: Any) -> Optional[float]:
    """Confidence is a fraction; values in (1, 100] are read as percentages."""

    number = clamp_score(value)
    if number is None:
        return None
    if number > 1.0:
        number = number / 100.0
    return round(number, 4)


def normalize_hashtags(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        raw = value.replace(",", " ").split()
    elif isinstance(value, (list, tuple)):
        raw = [str(entry) for entry in value if entry is not None]
    else:
        return []
    tags = []
    for entry in raw:
        tag = entry.strip().lstrip("#").strip()
        if tag:
            tags.append(tag.replace(" ", ""))
    return _dedupe(tags)[:MAX_HASHTAGS]


class CamelModel(BaseModel):
    """Base model exposing camelCase on the wire and accepting snake_case input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ContentRequest(CamelModel):
    type: ContentType = "social_post"
    platform: Platform = "instagram"
    topic: str = ""
    tone: Tone = "friendly"
    target_audience: str = ""
    keywords: List[str] = Field(default_factory=list)
    call_to_action: Optional[str] = None
    include_hashtags: bool = True
    max_length: int = Field(default=280, ge=50, le=2000)

    @field_validator("topic", "target_audience", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> str:
        return _clean_text(value) or ""

    @field_validator("call_to_action", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Optional[str]:
        return _clean_text(value)

    @field_validator("keywords", mode="before")
    @classmethod
    def _clean_keywords(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        keywords = [_clean_text(entry) for entry in value]
        return _dedupe([keyword for keyword in keywords if keyword])


class GeneratedContentRecord(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: Union[int, str]
    business_id: str
    title: str
    content: str
    hashtags: List[str] = Field(default_factory=list)
    word_count: int = 0
    estimated_read_time: Optional[int] = None
    seo_score: Optional[float] = None
    engagement_score: Optional[float] = None
    virality_score: Optional[float] = None
    sentiment_score: Optional[float] = None
    type: str
    platform: Optional[str] = None
    tone: Optional[str] = None
    target_audience: Optional[str] = None
    call_to_action: Optional[str] = None
    status: str = "draft"
    created_at: datetime

    @field_validator("hashtags", mode="before")
    @classmethod
    def _hashtags(cls, value: Any) -> List[str]:
        return normalize_hashtags(value)


class AiInsightRecord(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: Union[int, str]
    business_id: str
    title: str
    content: str
    type: str
    category: str
    priority: InsightPriority = "medium"
    actionable: bool = True
    metadata: Dict[str, Any] = Field(default_factory=dict)
    confidence: float = Field(default=DEFAULT_INSIGHT_CONFIDENCE, ge=0.0, le=1.0)
    applied: bool = False
    created_at: datetime

    @field_validator("metadata", mode="before")
    @classmethod
    def _metadata(cls, value: Any) -> Dict[str, Any]:
        return value if isinstance(value, dict) else {}


class InsightRequest(CamelModel):
    type: str = "generic"
    data: Optional[Any] = None


class AnalyzeRequest(CamelModel):
    content: str = ""
    platform: str = "instagram"


class VariationsRequest(CamelModel):
    content: str
    platforms: List[str] = Field(default_factory=list)

    @field_validator("platforms", mode="before")
    @classmethod
    def _clean_platforms(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        platforms = [(_clean_text(entry) or "").lower() for entry in value]
        return _dedupe([platform for platform in platforms if platform])


class HashtagsRequest(CamelModel):
    content: str
    platform: str = "instagram"
    business_id: Optional[str] = None


class HashtagsResponse(CamelModel):
    hashtags: List[str]


class PerformanceScores(CamelModel):
    """Predicted performance of a piece of content; also the analysis output schema."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    engagement_prediction: float
    virality_score: float
    sentiment_score: float
    suggestions: List[str] = Field(default_factory=list)

    @field_validator("engagement_prediction", "virality_score", "sentiment_score", mode="before")
    @classmethod
    def _clamp(cls, value: Any) -> float:
        score = clamp_score(value)
        if score is None:
            raise ValueError("score must be numeric")
        return score

    @field_validator("suggestions", mode="before")
    @classmethod
    def _suggestions(cls, value: Any) -> List[str]:
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple)):
            return []
        cleaned = [_clean_text(entry) for entry in value]
        return [entry for entry in cleaned if entry][:MAX_SUGGESTIONS]


class BusinessProfileResponse(CamelModel):
    id: str
    name: str
    business_type: str
    location: str
    description: str
    context: str
    menu_items: List[str]
    target_audiences: List[str]
    specialties: List[str]


class ContentCompletion(CamelModel):
    """Structured body expected back from a content generation call."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    title: Optional[str] = None
    content: str
    hashtags: List[str] = Field(default_factory=list)
    word_count: Optional[int] = None
    estimated_read_time: Optional[int] = None
    seo_score: Optional[float] = None
    engagement_score: Optional[float] = None
    virality_score: Optional[float] = None
    sentiment_score: Optional[float] = None

    @field_validator("content", mode="before")
    @classmethod
    def _require_content(cls, value: Any) -> str:
        text = _clean_text(value) if isinstance(value, str) else None
        if not text:
            raise ValueError("content must be a non-empty string")
        return text

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, value: Any) -> Optional[str]:
        return _clean_text(value) if isinstance(value, str) else None

    @field_validator("hashtags", mode="before")
    @classmethod
    def _hashtags(cls, value: Any) -> List[str]:
        return normalize_hashtags(value)

    @field_validator("seo_score", "engagement_score", "virality_score", "sentiment_score", mode="before")
    @classmethod
    def _scores(cls, value: Any) -> Optional[float]:
        return clamp_score(value)

    @field_validator("word_count", "estimated_read_time", mode="before")
    @classmethod
    def _counts(cls, value: Any) -> Optional[int]:
        number = clamp_score(value, upper=float("inf"))
        if number is None:
            return None
        return int(round(number))

    @model_validator(mode="after")
    def _apply_defaults(self) -> "ContentCompletion":
        if self.seo_score is None:
            self.seo_score = DEFAULT_SEO_SCORE
        if not self.word_count:
            self.word_count = len(self.content.split())
        return self


class InsightCompletion(CamelModel):
    """Structured body expected back from an insight analysis call."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    title: Optional[str] = None
    content: str
    priority: InsightPriority = "medium"
    actionable: bool = True
    confidence: float = DEFAULT_INSIGHT_CONFIDENCE
    recommendations: List[str] = Field(default_factory=list)

    @field_validator("content", mode="before")
    @classmethod
    def _require_content(cls, value: Any) -> str:
        if isinstance(value, (list, tuple)):
            value = "\n".join(f"- {entry}" for entry in value if _clean_text(entry))
        text = _clean_text(value) if isinstance(value, str) else None
        if not text:
            raise ValueError("content must be a non-empty string")
        return text

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, value: Any) -> Optional[str]:
        return _clean_text(value) if isinstance(value, str) else None

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, value: Any) -> str:
        label = (_clean_text(value) or "").lower()
        return label if label in ("low", "medium", "high") else "medium"

    @field_validator("actionable", mode="before")
    @classmethod
    def _actionable(cls, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() not in ("false", "no", "0", "")
        if value is None:
            return True
        return bool(value)

    @field_validator("confidence", mode="before")
    @classmethod
    def _confidence(cls, value: Any) -> float:
        confidence = clamp_confidence(value)
        return DEFAULT_INSIGHT_CONFIDENCE if confidence is None else confidence

    @field_validator("recommendations", mode="before")
    @classmethod
    def _recommendations(cls, value: Any) -> List[str]:
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple)):
            return []
        cleaned = [_clean_text(entry) for entry in value]
        return [entry for entry in cleaned if entry]
