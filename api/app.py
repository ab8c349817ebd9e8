from __future__ import annotations
from fastapi import FastAPI, HTTPException, Body, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel, Field
from dataclasses import asdict
import logging, typing as t

from admin_core import config
from admin_core.backend import create_client
from admin_core.errors import (
    AdminError,
    BackendNotConfiguredError,
    BackendReadError,
    BackendWriteError,
    PartialWriteError,
    ValidationError,
)
from admin_core.forms import OptionInput, QuestionForm
from admin_core.render import render_dashboard_page, render_notice
from admin_core.repository import DashboardRepository, QuestionRepository
from admin_core.sync import ListSyncController, question_section
from admin_core.types import TEST_TYPES, DashboardView

logging.basicConfig(level=getattr(logging, config.LOG_LEVEL, logging.INFO), format="[%(levelname)s] %(name)s: %(message)s")
log = logging.getLogger(__name__)

CLIENT = create_client()
QUESTIONS = QuestionRepository(CLIENT)
DASHBOARD = DashboardRepository(CLIENT)
SYNC = ListSyncController(QUESTIONS, DASHBOARD)

app = FastAPI(title="Assessment Admin")

# ---- Schemas ----
class OptionReq(BaseModel):
    text: str = ""
    scores: list[int | float | str | None] = Field(default_factory=list)

class QuestionReq(BaseModel):
    test_type: str = "disc"
    question_text: str = ""
    options: list[OptionReq] = Field(default_factory=list)

class RemoveOptionReq(BaseModel):
    options: list[OptionReq]
    index: int

# ---- Error mapping ----
_STATUS: dict[type, int] = {
    ValidationError: 422,
    BackendNotConfiguredError: 503,
    BackendReadError: 502,
    PartialWriteError: 502,
    BackendWriteError: 502,
}

@app.exception_handler(AdminError)
def admin_error_handler(request: Request, exc: AdminError):
    status = next((code for cls, code in _STATUS.items() if isinstance(exc, cls)), 500)
    body: dict[str, t.Any] = {"error": exc.kind, "message": exc.message}
    if isinstance(exc, ValidationError) and exc.option_index is not None:
        body["option_index"] = exc.option_index
    if isinstance(exc, PartialWriteError):
        body["question_id"] = exc.question_id
        body["rolled_back"] = exc.rolled_back
    log.info("%s %s -> %s (%s)", request.method, request.url.path, status, exc.kind)
    return JSONResponse(status_code=status, content=body)

# ---- Helpers ----
def _form_from(req: QuestionReq) -> QuestionForm:
    return QuestionForm(
        test_type=req.test_type,
        question_text=req.question_text,
        options=[OptionInput(text=o.text, scores=list(o.scores)) for o in req.options],
    )

def _check_type(test_type: str) -> str:
    tt = (test_type or "").strip().lower()
    if tt not in TEST_TYPES:
        raise HTTPException(404, f"unknown test type: {test_type}")
    return tt

# ---- Pages ----
@app.get("/health")
def health():
    return {"status": "ok", "backend": CLIENT.kind, "configured": CLIENT.is_configured}

@app.get("/", response_class=HTMLResponse)
def dashboard_page(section: str = "dashboard", test_type: str = "disc"):
    view = DashboardView(active_section=section, active_test_type=_check_type(test_type))
    stats = None
    if CLIENT.is_configured:
        stats = DASHBOARD.stats()
        for tt in TEST_TYPES:
            SYNC.refresh_list(view, tt)
        SYNC.refresh_profiles(view)
        SYNC.refresh_results(view)
    # refresh_list moves active_test_type along; restore the requested one
    view.active_test_type = _check_type(test_type)
    return HTMLResponse(render_dashboard_page(view, stats, configured=CLIENT.is_configured))

@app.get("/sections/questions/{test_type}", response_class=HTMLResponse)
def question_rows(test_type: str):
    tt = _check_type(test_type)
    view = DashboardView(active_section=question_section(tt), active_test_type=tt)
    if SYNC.refresh_list(view, tt) is None:
        return HTMLResponse(render_notice("Failed to load questions.", "error"), status_code=502)
    return HTMLResponse(view.sections[question_section(tt)])

@app.get("/sections/users", response_class=HTMLResponse)
def users_section():
    view = DashboardView(active_section="users")
    ok = SYNC.refresh_profiles(view) is not None
    return HTMLResponse(view.sections["users"], status_code=200 if ok else 502)

@app.get("/sections/results", response_class=HTMLResponse)
def results_section():
    view = DashboardView(active_section="results")
    ok = SYNC.refresh_results(view) is not None
    return HTMLResponse(view.sections["results"], status_code=200 if ok else 502)

# ---- JSON API ----
@app.get("/api/stats")
def stats():
    return asdict(DASHBOARD.stats())

@app.get("/api/questions")
def list_questions(test_type: str = Query("disc")):
    items = QUESTIONS.list_questions(_check_type(test_type))
    return {"test_type": test_type.lower(), "questions": [asdict(q) for q in items]}

@app.get("/api/questions/{question_id}")
def view_question(question_id: int):
    q = QUESTIONS.get_question(question_id)
    if q is None:
        raise HTTPException(404, "question not found")
    return asdict(q)

@app.post("/api/questions", status_code=201)
def create_question(req: QuestionReq = Body(...)):
    form = _form_from(req)
    view = DashboardView(active_section=question_section(form.test_type), active_test_type=form.test_type)
    q = SYNC.create_and_refresh(view, form)
    return {
        "question": asdict(q),
        "rows_html": view.sections.get(question_section(q.test_type)),
        "notices": view.notices,
    }

@app.put("/api/questions/{question_id}")
def edit_question(question_id: int):
    raise HTTPException(501, "editing questions is not available yet")

@app.delete("/api/questions/{question_id}")
def delete_question(question_id: int, test_type: str = Query(...)):
    tt = _check_type(test_type)
    view = DashboardView(active_section=question_section(tt), active_test_type=tt)
    SYNC.delete_and_refresh(view, question_id, tt)
    return {"ok": True, "rows_html": view.sections.get(question_section(tt)), "notices": view.notices}

@app.get("/api/question-form")
def blank_form(test_type: str = Query("disc")):
    form = QuestionForm(test_type=_check_type(test_type))
    return {**asdict(form), "score_range": [config.SCORE_MIN, config.SCORE_MAX]}

@app.post("/api/question-form/remove-option")
def remove_option(req: RemoveOptionReq):
    form = QuestionForm(options=[OptionInput(text=o.text, scores=list(o.scores)) for o in req.options])
    form.remove_option(req.index)
    return {"options": [asdict(o) for o in form.options]}

