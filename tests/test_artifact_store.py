import asyncio
from types import SimpleNamespace

import httpx
import pytest
from fastapi import HTTPException
from postgrest import APIError

from app.services import artifact_store
from app.services.artifact_store import SupabaseArtifactStore


class FakeQuery:
    """Records the PostgREST builder chain and replays a scripted outcome."""

    def __init__(self, client, table):
        self.client = client
        self.chain = [("table", table)]
        client.queries.append(self)

    def _record(self, name, *args, **kwargs):
        self.chain.append((name, args, kwargs))
        return self

    def select(self, *args, **kwargs):
        return self._record("select", *args, **kwargs)

    def insert(self, *args, **kwargs):
        return self._record("insert", *args, **kwargs)

    def delete(self, *args, **kwargs):
        return self._record("delete", *args, **kwargs)

    def eq(self, *args, **kwargs):
        return self._record("eq", *args, **kwargs)

    def order(self, *args, **kwargs):
        return self._record("order", *args, **kwargs)

    def limit(self, *args, **kwargs):
        return self._record("limit", *args, **kwargs)

    def execute(self):
        self.client.executions += 1
        outcome = self.client.outcomes.pop(0) if self.client.outcomes else []
        if isinstance(outcome, Exception):
            raise outcome
        return SimpleNamespace(data=outcome)


class FakeSupabaseClient:
    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.queries = []
        self.executions = 0

    def table(self, name):
        return FakeQuery(self, name)


def _store(client):
    return SupabaseArtifactStore("generated_content", client_factory=lambda: client)


def _postgrest_error(code):
    return APIError({"message": "rejected", "code": code, "hint": None, "details": None})


def _transport_error():
    return httpx.ConnectError("connection refused")


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    monkeypatch.setattr(artifact_store.time, "sleep", lambda _seconds: None)


def test_save_stamps_business_and_creation_time() -> None:
    client = FakeSupabaseClient([{"id": 12, "business_id": "allii-fish-market", "title": "t"}])

    row = asyncio.run(_store(client).save("allii-fish-market", {"title": "t", "business_id": "other"}))

    assert row["id"] == 12
    name, args, _ = client.queries[0].chain[1]
    assert name == "insert"
    inserted = args[0]
    assert inserted["business_id"] == "allii-fish-market"
    assert inserted["title"] == "t"
    assert inserted["created_at"]


def test_save_is_not_retried_on_transport_error() -> None:
    client = FakeSupabaseClient(_transport_error(), [{"id": 1}])

    with pytest.raises(HTTPException) as excinfo:
        asyncio.run(_store(client).save("allii-fish-market", {"title": "t"}))

    assert excinfo.value.status_code == 503
    assert client.executions == 1


def test_save_without_returned_row_is_rejected() -> None:
    client = FakeSupabaseClient([])

    with pytest.raises(HTTPException) as excinfo:
        asyncio.run(_store(client).save("allii-fish-market", {"title": "t"}))

    assert excinfo.value.status_code == 502


def test_list_filters_by_business_newest_first() -> None:
    rows = [{"id": 2}, {"id": 1}]
    client = FakeSupabaseClient(rows)

    assert asyncio.run(_store(client).list("allii-coconut-water", limit=5)) == rows

    chain = client.queries[0].chain
    assert chain[0] == ("table", "generated_content")
    assert ("eq", ("business_id", "allii-coconut-water"), {}) in chain
    orders = [entry for entry in chain if entry[0] == "order"]
    assert orders == [("order", ("created_at",), {"desc": True}), ("order", ("id",), {"desc": True})]
    assert ("limit", (5,), {}) in chain


def test_list_retries_transport_errors() -> None:
    client = FakeSupabaseClient(_transport_error(), _transport_error(), [{"id": 1}])

    assert asyncio.run(_store(client).list("allii-fish-market")) == [{"id": 1}]
    assert client.executions == 3


def test_list_gives_up_after_retries() -> None:
    client = FakeSupabaseClient(_transport_error(), _transport_error(), _transport_error(), [{"id": 1}])

    with pytest.raises(HTTPException) as excinfo:
        asyncio.run(_store(client).list("allii-fish-market"))

    assert excinfo.value.status_code == 503
    assert client.executions == 3


def test_get_and_delete_are_scoped_to_business() -> None:
    client = FakeSupabaseClient([{"id": 4}], [], [{"id": 4}], [])
    store = _store(client)

    assert asyncio.run(store.get("allii-fish-market", 4)) == {"id": 4}
    assert asyncio.run(store.get("allii-fish-market", 5)) is None
    assert asyncio.run(store.delete("allii-fish-market", 4)) is True
    assert asyncio.run(store.delete("allii-fish-market", 5)) is False

    for query in client.queries:
        assert ("eq", ("business_id", "allii-fish-market"), {}) in query.chain
    assert ("eq", ("id", "4"), {}) in client.queries[0].chain
    assert client.queries[2].chain[1][0] == "delete"


@pytest.mark.parametrize(
    ("code", "status"),
    [("401", 401), ("403", 403), ("404", 404), ("23505", 502), (None, 502)],
)
def test_postgrest_errors_map_to_http_status(code, status) -> None:
    client = FakeSupabaseClient(_postgrest_error(code))

    with pytest.raises(HTTPException) as excinfo:
        asyncio.run(_store(client).list("allii-fish-market"))

    assert excinfo.value.status_code == status
    assert client.executions == 1


def test_unconfigured_supabase_is_unavailable() -> None:
    store = SupabaseArtifactStore("generated_content", client_factory=lambda: None)

    with pytest.raises(HTTPException) as excinfo:
        asyncio.run(store.list("allii-fish-market"))

    assert excinfo.value.status_code == 503
