from __future__ import annotations

import json

import httpx

from admin_core.backend import RestBackendClient, UnconfiguredBackendClient, create_client
from admin_core.memory_backend import MemoryBackendClient


def _client(handler) -> RestBackendClient:
    return RestBackendClient("https://demo.supabase.co/", "anon-key", transport=httpx.MockTransport(handler))


def test_select_with_embed_filter_and_order():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"id": 1, "test_type": "disc", "options": []}])

    resp = (
        _client(handler)
        .table("questions")
        .select("*, options (*)")
        .eq("test_type", "disc")
        .order("question_order", ascending=True)
        .execute()
    )

    assert resp.error is None
    assert resp.data[0]["id"] == 1
    req = seen[0]
    assert req.method == "GET"
    assert req.url.path == "/rest/v1/questions"
    assert req.url.params["select"] == "*,options(*)"
    assert req.url.params["test_type"] == "eq.disc"
    assert req.url.params["order"] == "question_order.asc"
    assert req.headers["apikey"] == "anon-key"
    assert req.headers["authorization"] == "Bearer anon-key"


def test_insert_returning_single_row():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={"id": 7, "question_text": "Pick one"})

    row = {"test_type": "disc", "question_text": "Pick one", "question_order": 1}
    resp = _client(handler).table("questions").insert(row).select().single().execute()

    assert resp.data == {"id": 7, "question_text": "Pick one"}
    req = seen[0]
    assert req.method == "POST"
    assert json.loads(req.content) == row
    assert req.headers["prefer"] == "return=representation"
    assert req.headers["accept"] == "application/vnd.pgrst.object+json"


def test_delete_with_filter():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(204)

    resp = _client(handler).table("options").delete().eq("question_id", 5).execute()

    assert resp.error is None and resp.data is None
    assert seen[0].method == "DELETE"
    assert seen[0].url.params["question_id"] == "eq.5"
    assert seen[0].headers["prefer"] == "return=minimal"


def test_count_only_head_request():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "HEAD"
        assert request.headers["prefer"] == "count=exact"
        assert request.url.params["created_at"] == "gte.2026-10-19"
        return httpx.Response(200, headers={"Content-Range": "0-0/42"})

    resp = (
        _client(handler)
        .table("results")
        .select("*", count="exact", head=True)
        .gte("created_at", "2026-10-19")
        .execute()
    )
    assert resp.count == 42
    assert resp.data is None


def test_errors_are_values_not_exceptions():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"message": "invalid input syntax", "code": "22P02"})

    resp = _client(handler).table("questions").select().execute()
    assert resp.data is None
    assert resp.error.message == "invalid input syntax"
    assert resp.error.code == "22P02"


def test_transport_failure_is_reported():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    resp = _client(handler).table("questions").select().execute()
    assert resp.error.kind == "transport"
    assert "connection refused" in resp.error.message


def test_create_client_picks_backend():
    assert isinstance(create_client({"ADMIN_BACKEND": "memory"}), MemoryBackendClient)

    placeholder = create_client(
        {"ADMIN_BACKEND": "rest", "SUPABASE_URL": "YOUR_SUPABASE_URL", "SUPABASE_ANON_KEY": "YOUR_SUPABASE_ANON_KEY"}
    )
    assert isinstance(placeholder, UnconfiguredBackendClient)
    assert placeholder.is_configured is False
    resp = placeholder.table("questions").select().execute()
    assert resp.error.kind == "unconfigured"

    real = create_client({"ADMIN_BACKEND": "rest", "SUPABASE_URL": "https://x.supabase.co", "SUPABASE_ANON_KEY": "k"})
    try:
        assert isinstance(real, RestBackendClient)
        assert real.is_configured
    finally:
        real.close()
