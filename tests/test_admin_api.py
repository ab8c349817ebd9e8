from __future__ import annotations

import importlib
import sys

from fastapi.testclient import TestClient

from tests.conftest import seed_question


_DEF_MODULES = [
    "admin_core.config",
    "api.app",
]


def _reload_app(monkeypatch, tmp_path, backend: str = "memory"):
    monkeypatch.setenv("ADMIN_BACKEND", backend)
    monkeypatch.setenv("ADMIN_CONFIG", str(tmp_path / "missing.json"))
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
    for name in _DEF_MODULES:
        if name in sys.modules:
            importlib.reload(sys.modules[name])
        else:
            __import__(name)
    return sys.modules["api.app"]


_PAYLOAD = {
    "test_type": "disc",
    "question_text": "Pick one",
    "options": [
        {"text": "A", "scores": [5, 0, 0, 0]},
        {"text": "B", "scores": ["0", "5", "", None]},
    ],
}


def test_create_list_and_delete(monkeypatch, tmp_path):
    app_module = _reload_app(monkeypatch, tmp_path)
    client = TestClient(app_module.app)

    health = client.get("/health").json()
    assert health == {"status": "ok", "backend": "memory", "configured": True}

    created = client.post("/api/questions", json=_PAYLOAD)
    assert created.status_code == 201
    body = created.json()
    qid = body["question"]["id"]
    assert [o["option_text"] for o in body["question"]["options"]] == ["A", "B"]
    assert body["question"]["options"][1]["disc_i"] == 5
    assert "Pick one" in body["rows_html"]
    assert body["notices"][0]["message"] == "Question added."

    listed = client.get("/api/questions", params={"test_type": "disc"}).json()
    assert [q["id"] for q in listed["questions"]] == [qid]
    assert client.get("/api/questions", params={"test_type": "mbti"}).json()["questions"] == []

    detail = client.get(f"/api/questions/{qid}")
    assert detail.status_code == 200 and len(detail.json()["options"]) == 2

    deleted = client.delete(f"/api/questions/{qid}", params={"test_type": "disc"})
    assert deleted.status_code == 200
    assert "No questions registered." in deleted.json()["rows_html"]
    assert app_module.CLIENT.rows("options") == []
    assert client.get(f"/api/questions/{qid}").status_code == 404


def test_validation_blocks_before_backend(monkeypatch, tmp_path):
    app_module = _reload_app(monkeypatch, tmp_path)
    client = TestClient(app_module.app)

    one_option = dict(_PAYLOAD, options=[{"text": "A", "scores": [1, 0, 0, 0]}])
    resp = client.post("/api/questions", json=one_option)
    assert resp.status_code == 422
    assert resp.json()["error"] == "validation"

    blank_second = dict(_PAYLOAD, options=[{"text": "A"}, {"text": " "}, {"text": "C"}])
    resp = client.post("/api/questions", json=blank_second)
    assert resp.status_code == 422
    assert resp.json()["option_index"] == 1

    assert app_module.CLIENT.calls == []


def test_partial_write_is_reported(monkeypatch, tmp_path):
    app_module = _reload_app(monkeypatch, tmp_path)
    app_module.CLIENT.inject_failure("options", "insert", "options offline")
    client = TestClient(app_module.app)

    resp = client.post("/api/questions", json=_PAYLOAD)
    assert resp.status_code == 502
    body = resp.json()
    assert body["error"] == "partial_write"
    assert body["rolled_back"] is True
    assert app_module.CLIENT.rows("questions") == []


def test_sections_and_page(monkeypatch, tmp_path):
    app_module = _reload_app(monkeypatch, tmp_path)
    seed_question(app_module.CLIENT, test_type="stress", text="Stress <b>check</b>")
    (profile,) = app_module.CLIENT.seed("profiles", [{"name": "Park", "email": "park@example.com"}])
    app_module.CLIENT.seed("results", [{"profile_id": profile["id"], "test_type": "stress", "result_data": {"s": 2}}])
    client = TestClient(app_module.app)

    rows = client.get("/sections/questions/stress")
    assert rows.status_code == 200
    assert "Stress &lt;b&gt;check&lt;/b&gt;" in rows.text
    assert client.get("/sections/questions/disc").text.count("<tr>") == 1
    assert client.get("/sections/questions/enneagram").status_code == 404

    assert "Park" in client.get("/sections/users").text
    assert "Park" in client.get("/sections/results").text

    app_module.CLIENT.inject_failure("questions", "select", "down")
    failed = client.get("/sections/questions/stress")
    assert failed.status_code == 502

    stats = client.get("/api/stats").json()
    assert stats["total_users"] == 1 and stats["total_questions"] == 1

    page = client.get("/", params={"section": "users"})
    assert page.status_code == 200
    assert "Assessment Admin" in page.text
    assert 'data-active-section="users"' in page.text


def test_form_helpers_and_edit_stub(monkeypatch, tmp_path):
    app_module = _reload_app(monkeypatch, tmp_path)
    client = TestClient(app_module.app)

    blank = client.get("/api/question-form", params={"test_type": "mbti"}).json()
    assert blank["test_type"] == "mbti" and len(blank["options"]) == 2

    two = {"options": [{"text": "A"}, {"text": "B"}], "index": 0}
    refused = client.post("/api/question-form/remove-option", json=two)
    assert refused.status_code == 422

    three = {"options": [{"text": "A"}, {"text": "B"}, {"text": "C"}], "index": 2}
    ok = client.post("/api/question-form/remove-option", json=three)
    assert ok.status_code == 200
    assert [o["text"] for o in ok.json()["options"]] == ["A", "B"]

    assert client.put("/api/questions/1").status_code == 501


def test_unconfigured_backend(monkeypatch, tmp_path):
    app_module = _reload_app(monkeypatch, tmp_path, backend="rest")
    client = TestClient(app_module.app)

    assert client.get("/health").json()["configured"] is False
    stats = client.get("/api/stats")
    assert stats.status_code == 503
    assert stats.json()["error"] == "unconfigured"
    assert client.post("/api/questions", json=_PAYLOAD).status_code == 503
    assert "not configured" in client.get("/").text
