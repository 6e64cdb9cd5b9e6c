import json
import time
from datetime import datetime, timedelta, timezone
from itertools import count
from types import SimpleNamespace

import httpx
import pytest
from fastapi.testclient import TestClient
from openai import APIConnectionError

from app.api import dependencies
from app.main import app
from app.security.guards import reset_rate_limits
from app.services.artifact_store import SupabaseArtifactStore
from app.services.generation_client import GenerationClient
from app.services.notifications import EventBroadcaster


class FakeArtifactStore(SupabaseArtifactStore):
    """In-memory table honoring the same business scoping as the Supabase store."""

    def __init__(self, table: str):
        super().__init__(table, client_factory=lambda: None)
        self.rows = []
        self._ids = count(1)
        self._clock = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

    async def save(self, business_id, values):
        self._clock += timedelta(seconds=1)
        row = dict(values)
        row.update(id=next(self._ids), business_id=business_id, created_at=self._clock.isoformat())
        self.rows.append(row)
        return dict(row)

    async def list(self, business_id, *, limit=100):
        rows = [dict(row) for row in self.rows if row["business_id"] == business_id]
        rows.sort(key=lambda row: (row["created_at"], row["id"]), reverse=True)
        return rows[:limit]

    async def get(self, business_id, artifact_id):
        for row in self.rows:
            if row["business_id"] == business_id and str(row["id"]) == str(artifact_id):
                return dict(row)
        return None

    async def delete(self, business_id, artifact_id):
        row = await self.get(business_id, artifact_id)
        if row is None:
            return False
        self.rows = [entry for entry in self.rows if entry["id"] != row["id"]]
        return True


class FakeCompletions:
    """Stands in for ``client.chat.completions``.

    Replies come from ``handler(kwargs)`` when set, otherwise from the
    ``responses`` queue. An exception instance is raised instead of returned.
    """

    def __init__(self):
        self.calls = []
        self.responses = []
        self.handler = None

    def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.handler(kwargs) if self.handler is not None else self.responses.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, dict):
            reply = json.dumps(reply)
        message = SimpleNamespace(content=reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeOpenAI:
    def __init__(self, completions: FakeCompletions):
        self.chat = SimpleNamespace(completions=completions)


def connection_error() -> APIConnectionError:
    return APIConnectionError(request=httpx.Request("POST", "https://api.x.ai/v1/chat/completions"))


def user_prompt(call) -> str:
    return call["messages"][-1]["content"]


@pytest.fixture
def completions() -> FakeCompletions:
    return FakeCompletions()


@pytest.fixture
def generator(completions: FakeCompletions) -> GenerationClient:
    return GenerationClient(FakeOpenAI(completions), model="test-model")


@pytest.fixture
def content_rows() -> FakeArtifactStore:
    return FakeArtifactStore("generated_content")


@pytest.fixture
def insight_rows() -> FakeArtifactStore:
    return FakeArtifactStore("ai_insights")


@pytest.fixture
def events() -> EventBroadcaster:
    return EventBroadcaster()


@pytest.fixture(name="api_client")
def client_fixture(generator, content_rows, insight_rows, events):
    async def override_generator():
        return generator

    async def override_content_store():
        return content_rows

    async def override_insight_store():
        return insight_rows

    async def override_events():
        return events

    app.dependency_overrides[dependencies.get_generation_client] = override_generator
    app.dependency_overrides[dependencies.get_content_store] = override_content_store
    app.dependency_overrides[dependencies.get_insight_store] = override_insight_store
    app.dependency_overrides[dependencies.get_event_broadcaster] = override_events
    reset_rate_limits()

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
    reset_rate_limits()


@pytest.fixture
def unconfigured_generator(api_client):
    """Swap in a client with no completion backend for the current test."""

    async def override_generator():
        return GenerationClient(None)

    app.dependency_overrides[dependencies.get_generation_client] = override_generator
    yield


class RecordingSocket:
    """WebSocket double; ``fail=True`` makes every send raise."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.accepted = False
        self.sent = []

    async def accept(self):
        self.accepted = True

    async def send_json(self, message):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(message)


def wait_until(condition, timeout: float = 2.0) -> bool:
    """Poll ``condition`` while background tasks on the app loop catch up."""

    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.01)
    return condition()
