import asyncio

import pytest
from fastapi import HTTPException
from starlette.requests import Request

from app.schemas import ContentCompletion, InsightCompletion, clamp_confidence, clamp_score, normalize_hashtags
from app.security import guards
from app.security.guards import get_client_ip, rate_limit_request, reset_rate_limits, tracked_clients
from app.services import content_analyzer
from app.services.business_profiles import BusinessNotFound, list_businesses, resolve_business
from app.services.notifications import CONTENT_CREATED, EventBroadcaster
from conftest import RecordingSocket, connection_error


def _request(host: str = "10.0.0.1", forwarded: str = "") -> Request:
    headers = [(b"x-forwarded-for", forwarded.encode())] if forwarded else []
    return Request({"type": "http", "method": "POST", "path": "/", "headers": headers, "client": (host, 5000)})


def test_resolve_business() -> None:
    assert resolve_business(" allii-fish-market ").name == "Allii Fish Market"
    assert {profile.id for profile in list_businesses()} == {"allii-fish-market", "allii-coconut-water"}

    with pytest.raises(BusinessNotFound) as excinfo:
        resolve_business("")
    assert excinfo.value.business_id == ""


def test_clamp_helpers() -> None:
    assert clamp_score(150) == 100
    assert clamp_score("-4") == 0
    assert clamp_score("82%") == 82
    assert clamp_score(True) is None
    assert clamp_score("high") is None
    assert clamp_score(float("nan")) is None
    assert clamp_score(float("inf"), upper=float("inf")) is None
    assert clamp_score("-Infinity") is None
    assert clamp_confidence(0.4) == 0.4
    assert clamp_confidence(85) == 0.85
    assert clamp_confidence(-1) == 0.0


def test_normalize_hashtags() -> None:
    assert normalize_hashtags("#poke, #Ahi ahi") == ["poke", "Ahi"]
    assert normalize_hashtags(["#a", None, "#b c"]) == ["a", "bc"]
    assert normalize_hashtags({"not": "a list"}) == []


def test_completion_schemas_coerce_loose_values() -> None:
    content = ContentCompletion.model_validate({"content": "  Ono grinds  ", "wordCount": 0, "hashtags": "#ono"})
    assert content.content == "Ono grinds"
    assert content.word_count == 2
    assert content.hashtags == ["ono"]
    assert content.seo_score == 75

    insight = InsightCompletion.model_validate(
        {"content": ["Raise prices", "Add a bowl"], "actionable": "false", "priority": "Low"}
    )
    assert insight.content == "- Raise prices\n- Add a bowl"
    assert insight.actionable is False
    assert insight.priority == "low"
    assert insight.confidence == 0.75


def test_analyzer_fallback_for_empty_content(generator, completions) -> None:
    scores = asyncio.run(content_analyzer.score("   ", "instagram", generator))

    assert scores == content_analyzer.fallback_scores()
    assert completions.calls == []


def test_analyzer_fallback_on_failure(generator, completions) -> None:
    completions.responses = [connection_error()]

    scores = asyncio.run(content_analyzer.score("Fresh ahi", "instagram", generator))

    assert (scores.engagement_prediction, scores.virality_score, scores.sentiment_score) == (50, 25, 75)
    assert len(scores.suggestions) == 3


def test_broadcast_drops_failed_sessions() -> None:
    events = EventBroadcaster()
    healthy, broken = RecordingSocket(), RecordingSocket(fail=True)

    async def scenario():
        await events.connect(healthy)
        await events.connect(broken)
        return await events.broadcast(CONTENT_CREATED, {"id": 1})

    delivered = asyncio.run(scenario())

    assert delivered == 1
    assert healthy.accepted and broken.accepted
    assert healthy.sent == [{"type": "content_created", "data": {"id": 1}}]
    assert events.session_count == 1


def test_notify_without_sessions_or_loop_is_silent() -> None:
    events = EventBroadcaster()
    events.notify(CONTENT_CREATED, {"id": 1})

    asyncio.run(events.connect(RecordingSocket()))
    events.notify(CONTENT_CREATED, {"id": 1})
    assert events.session_count == 1


def test_notify_delivers_in_background() -> None:
    events = EventBroadcaster()
    socket = RecordingSocket()

    async def scenario():
        await events.connect(socket)
        events.notify(CONTENT_CREATED, {"id": 7})
        await asyncio.sleep(0)

    asyncio.run(scenario())
    assert socket.sent == [{"type": "content_created", "data": {"id": 7}}]


@pytest.fixture
def limiter():
    reset_rate_limits()
    yield
    reset_rate_limits()


def test_rate_limit_per_client_and_scope(limiter) -> None:
    for _ in range(2):
        rate_limit_request(_request(), scope="test", limit=2)
    with pytest.raises(HTTPException) as excinfo:
        rate_limit_request(_request(), scope="test", limit=2)
    assert excinfo.value.status_code == 429

    rate_limit_request(_request(host="10.0.0.2"), scope="test", limit=2)
    rate_limit_request(_request(), scope="other", limit=2)


def test_forwarded_header_ignored_without_trusted_proxy(limiter) -> None:
    assert get_client_ip(_request(host="10.0.0.1", forwarded="203.0.113.7")) == "10.0.0.1"

    for index in range(2):
        rate_limit_request(_request(forwarded=f"203.0.113.{index}"), scope="test", limit=2)
    with pytest.raises(HTTPException):
        rate_limit_request(_request(forwarded="203.0.113.99"), scope="test", limit=2)


def test_forwarded_header_honored_behind_trusted_proxy(limiter, monkeypatch) -> None:
    monkeypatch.setattr(guards, "TRUSTED_PROXY_IPS", ("10.0.0.9",))

    assert get_client_ip(_request(host="10.0.0.9", forwarded="203.0.113.7, 10.0.0.9")) == "203.0.113.7"
    assert get_client_ip(_request(host="10.0.0.9")) == "10.0.0.9"

    for _ in range(2):
        rate_limit_request(_request(host="10.0.0.9", forwarded="203.0.113.7"), scope="test", limit=2)
    with pytest.raises(HTTPException):
        rate_limit_request(_request(host="10.0.0.9", forwarded="203.0.113.7"), scope="test", limit=2)
    rate_limit_request(_request(host="10.0.0.9", forwarded="203.0.113.8"), scope="test", limit=2)


def test_idle_clients_are_evicted(limiter, monkeypatch) -> None:
    now = {"value": 1000.0}
    monkeypatch.setattr(guards, "_clock", lambda: now["value"])

    for host in ("10.0.0.1", "10.0.0.2", "10.0.0.3"):
        rate_limit_request(_request(host=host), scope="test", limit=5, window_seconds=60)
    assert tracked_clients() == 3

    now["value"] += 120
    rate_limit_request(_request(host="10.0.0.4"), scope="test", limit=5, window_seconds=60)
    assert tracked_clients() == 1
