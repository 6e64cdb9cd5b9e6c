"""Prompt assembly for content, insight, and analysis requests.

Every function here is pure: it turns a request plus a ``BusinessProfile``
into instruction text and performs no I/O.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

from app.schemas import CONTENT_TYPE_LABELS, ContentRequest
from app.services.business_profiles import BusinessProfile

MAX_INSIGHT_DATA_CHARS = 4000

CONTENT_OUTPUT_SCHEMA = (
    "{\n"
    '  "title": string,                 // engaging title or headline\n'
    '  "content": string,               // main content body\n'
    '  "hashtags": [string],            // without the # symbol, empty list if not requested\n'
    '  "wordCount": integer,\n'
    '  "estimatedReadTime": integer | null,  // minutes, only for long-form content\n'
    '  "seoScore": integer,             // 0-100\n'
    '  "engagementScore": integer,      // 0-100\n'
    '  "viralityScore": integer,        // 0-100\n'
    '  "sentimentScore": integer        // 0-100\n'
    "}"
)

INSIGHT_OUTPUT_SCHEMA = (
    "{\n"
    '  "title": string,\n'
    '  "content": string,               // the full analysis as readable text\n'
    '  "priority": "low" | "medium" | "high",\n'
    '  "actionable": boolean,\n'
    '  "confidence": number,            // 0.0-1.0\n'
    '  "recommendations": [string]      // 3-5 concrete next steps\n'
    "}"
)

ANALYSIS_OUTPUT_SCHEMA = (
    "{\n"
    '  "engagementPrediction": integer,  // 0-100\n'
    '  "viralityScore": integer,         // 0-100\n'
    '  "sentimentScore": integer,        // 0-100\n'
    '  "suggestions": [string, string, string]\n'
    "}"
)

PLATFORM_GUIDELINES: Dict[str, str] = {
    "twitter": "Maximum 280 characters, punchy and conversational",
    "instagram": "Visual-focused, emoji-friendly, caption style",
    "facebook": "Community-focused, conversational, invites comments",
    "tiktok": "Trendy, energetic, youth-oriented, written as a short video hook",
    "email": "Clear subject-worthy opening, scannable paragraphs, one call to action",
    "website": "Informative, SEO-friendly, complete sentences",
}


@dataclass(frozen=True)
class InsightTemplate:
    key: str
    category: str
    title: str
    analyst: str
    instruction: str


INSIGHT_TEMPLATES: Dict[str, InsightTemplate] = {
    "trend-analysis": InsightTemplate(
        key="trend-analysis",
        category="social_trend",
        title="Trend Analysis Report",
        analyst="a food and beverage trend analyst specializing in social media market intelligence",
        instruction=(
            "Analyze current food/beverage and social media trends for {summary}. "
            "Focus on trending ingredients, preparation styles, and customer preferences. "
            "Provide 3-5 actionable insights about {catalog} items, pricing, or marketing opportunities."
        ),
    ),
    "competitor-analysis": InsightTemplate(
        key="competitor-analysis",
        category="competitor",
        title="Competitor Analysis Report",
        analyst="a competitive intelligence analyst for local food and beverage businesses",
        instruction=(
            "Analyze the competitive landscape for {summary}. "
            "Focus on pricing changes, {catalog} updates, promotions, and market positioning. "
            "Identify key differentiators and opportunities."
        ),
    ),
    "sentiment-analysis": InsightTemplate(
        key="sentiment-analysis",
        category="sentiment",
        title="Sentiment Analysis Report",
        analyst="a customer sentiment analyst specializing in food and beverage feedback",
        instruction=(
            "Analyze customer sentiment and feedback for {summary}. "
            "Identify key topics, sentiment trends, customer satisfaction drivers, and improvement areas."
        ),
    ),
    "pricing-analysis": InsightTemplate(
        key="pricing-analysis",
        category="pricing",
        title="Pricing Analysis Report",
        analyst="a pricing strategist for food and beverage businesses",
        instruction=(
            "Analyze pricing optimization for {summary}. "
            "Consider market positioning, cost margins, and customer demand for each {catalog} item, "
            "and suggest concrete price adjustments with their rationale."
        ),
    ),
    "menu-suggestions": InsightTemplate(
        key="menu-suggestions",
        category="menu_suggestion",
        title="Menu Suggestions Report",
        analyst="a product developer who creates authentic new offerings",
        instruction=(
            "Suggest new {catalog} items for {summary} that leverage trending and seasonal ingredients "
            "while staying true to the brand. For each suggestion give a name, description, "
            "key ingredients, and an estimated price."
        ),
    ),
}

GENERIC_INSIGHT_TEMPLATE = InsightTemplate(
    key="generic",
    category="market_analysis",
    title="Business Insights Report",
    analyst="a business analyst specializing in local food and beverage businesses",
    instruction="Provide business insights for {summary} based on current market conditions.",
)


def normalize_insight_kind(kind: Optional[str]) -> str:
    return (kind or "").strip().lower().replace("_", "-").replace(" ", "-")


def resolve_insight_template(kind: Optional[str]) -> InsightTemplate:
    """Return the template for ``kind``; unknown kinds use the generic one."""

    return INSIGHT_TEMPLATES.get(normalize_insight_kind(kind), GENERIC_INSIGHT_TEMPLATE)


def content_system_prompt(profile: BusinessProfile) -> str:
    return (
        f"You are an expert content marketing specialist with deep knowledge of {profile.expertise}, "
        "social media trends, and local business marketing. Create authentic, engaging content "
        "that drives customer action. Always answer with a single valid JSON object."
    )


def insight_system_prompt(template: InsightTemplate, profile: BusinessProfile) -> str:
    return (
        f"You are {template.analyst}, advising {profile.name}. "
        "Provide data-driven insights that are specific, actionable, and culturally aware. "
        "Always answer with a single valid JSON object."
    )


def _subject_line(request: ContentRequest) -> str:
    if request.type == "social_post":
        return f"a {request.platform} post"
    return f"a {CONTENT_TYPE_LABELS[request.type].lower()} for {request.platform}"


def build_content_prompt(request: ContentRequest, profile: BusinessProfile) -> str:
    """Assemble the instruction for a content generation request."""

    keywords = ", ".join(request.keywords) if request.keywords else "none"
    lines = [
        f"You are an expert content creator for {profile.name}, a {profile.business_type.lower()} "
        f"in {profile.location}.",
        "",
        "BUSINESS CONTEXT:",
        profile.context,
        "",
        f"Create {_subject_line(request)} with these specifications:",
        f"- Content type: {CONTENT_TYPE_LABELS[request.type]}",
        f"- Platform: {request.platform}",
        f"- Topic: {request.topic}",
        f"- Tone: {request.tone}",
        f"- Target audience: {request.target_audience or ', '.join(profile.target_audiences)}",
        f"- Keywords to include: {keywords}",
    ]
    if request.call_to_action:
        lines.append(f"- Call to action: {request.call_to_action}")
    lines.append(f"- Maximum length: {request.max_length} characters")

    requirements = [
        f"Make it authentic and specific to {profile.name} ({profile.description.lower()}).",
        f"Reference real items from the {profile.name} {profile.catalog_label}: "
        f"{', '.join(profile.menu_items)}. Never invent items that are not on this list.",
        f"Use domain vocabulary when appropriate: {', '.join(profile.vocabulary)}.",
        f"Highlight what makes the business special: {', '.join(profile.specialties)}.",
        "Include sensory details (taste, smell, texture, visual appeal).",
        "Make it engaging and actionable.",
    ]
    if request.include_hashtags:
        requirements.append("Include 5-10 relevant hashtags in the hashtags field.")
    else:
        requirements.append("Do not include hashtags; return an empty hashtags list.")

    lines.extend(["", "IMPORTANT REQUIREMENTS:"])
    lines.extend(f"{index}. {requirement}" for index, requirement in enumerate(requirements, start=1))
    lines.extend(["", "Respond ONLY with a JSON object with exactly these fields:", CONTENT_OUTPUT_SCHEMA])
    return "\n".join(lines)


def _format_insight_data(data: Any) -> Optional[str]:
    if data in (None, "", [], {}):
        return None
    try:
        payload = json.dumps(data, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        payload = str(data)
    if len(payload) > MAX_INSIGHT_DATA_CHARS:
        payload = payload[:MAX_INSIGHT_DATA_CHARS] + "..."
    return payload


def build_insight_prompt(kind: Optional[str], profile: BusinessProfile, data: Any = None) -> str:
    """Assemble the instruction for an insight analysis of the given kind."""

    template = resolve_insight_template(kind)
    lines = [
        template.instruction.format(summary=profile.summary(), catalog=profile.catalog_label),
        "",
        "BUSINESS CONTEXT:",
        profile.context,
        f"Current {profile.catalog_label}: {', '.join(profile.menu_items)}",
        f"Target audiences: {', '.join(profile.target_audiences)}",
    ]
    supporting = _format_insight_data(data)
    if supporting:
        lines.extend(["", "Supporting data (JSON):", supporting])
    lines.extend(["", "Respond ONLY with a JSON object with exactly these fields:", INSIGHT_OUTPUT_SCHEMA])
    return "\n".join(lines)


def build_analysis_prompt(text: str, platform: str) -> str:
    return (
        f"Analyze this {platform} content and predict its performance:\n\n"
        f'Content: "{text}"\n\n'
        f"Provide analysis as JSON:\n{ANALYSIS_OUTPUT_SCHEMA}"
    )


def build_variation_prompt(text: str, platform: str) -> str:
    guideline = PLATFORM_GUIDELINES.get(platform, "Follow the platform's usual conventions")
    return (
        f"Adapt this content for {platform} while maintaining the core message:\n\n"
        f'Original content: "{text}"\n\n'
        f"Platform-specific requirements:\n- {guideline}\n\n"
        "Respond with only the adapted content, no additional text."
    )


def build_hashtag_prompt(text: str, platform: str, profile: Optional[BusinessProfile] = None) -> str:
    lines = [
        f"Generate relevant hashtags for this {platform} content:",
        "",
        f'Content: "{text}"',
        "",
        "Requirements:",
        "- 10-15 hashtags",
        "- Mix of popular and niche tags",
        "- Include some trending tags",
    ]
    if profile is not None:
        lines.insert(1, f"The content is for {profile.name}, a {profile.business_type.lower()} in {profile.location}.")
        lines.append(f"- Include location-based tags for {profile.location}")
        lines.append(f"- Include tags about: {', '.join(profile.vocabulary[:4])}")
    lines.extend(["", "Respond with only the hashtags, one per line, without the # symbol."])
    return "\n".join(lines)


__all__ = [
    "GENERIC_INSIGHT_TEMPLATE",
    "INSIGHT_TEMPLATES",
    "InsightTemplate",
    "build_analysis_prompt",
    "build_content_prompt",
    "build_hashtag_prompt",
    "build_insight_prompt",
    "build_variation_prompt",
    "content_system_prompt",
    "insight_system_prompt",
    "normalize_insight_kind",
    "resolve_insight_template",
]
