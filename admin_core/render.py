"""HTML fragments for the admin dashboard.

All functions are pure: they take domain records and return markup.  Every
user-supplied field goes through :func:`_e` before it is interpolated.
"""
from __future__ import annotations

import html
import json
from datetime import datetime
from typing import Any, Dict, Iterable, List, Sequence

from . import config
from .types import TEST_TYPES, DashboardStats, DashboardView, Profile, Question, Result

QUESTION_COLUMNS: tuple[str, ...] = ("#", "Question", "Options", "Created", "Actions")

TEST_TYPE_LABELS: Dict[str, str] = {"disc": "DiSC", "mbti": "MBTI", "stress": "Stress"}

SECTION_TITLES: Dict[str, str] = {
    "dashboard": "Dashboard",
    "users": "Users",
    "disc-questions": "DiSC questions",
    "mbti-questions": "MBTI questions",
    "stress-questions": "Stress questions",
    "results": "Results",
}


def _e(value: Any) -> str:
    return html.escape("" if value is None else str(value), quote=True)


def format_date(raw: Any) -> str:
    """Date-only rendering of a backend timestamp; ``-`` when unparseable."""
    if not raw:
        return "-"
    text = str(raw).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).strftime(config.DATE_FORMAT)
    except ValueError:
        return "-"


def _empty_row(message: str, colspan: int) -> str:
    return f"<tr><td colspan=\"{colspan}\" class=\"empty\">{_e(message)}</td></tr>"


def _question_row(index: int, q: Question) -> str:
    qid = _e(q.id)
    return (
        "<tr>"
        f"<td>{index}</td>"
        f"<td>{_e(q.question_text)}</td>"
        f"<td>{len(q.options)}</td>"
        f"<td>{format_date(q.created_at)}</td>"
        "<td>"
        f"<button class=\"btn btn-primary btn-sm\" data-action=\"view\" data-question-id=\"{qid}\">View</button>"
        f"<button class=\"btn btn-warning btn-sm\" data-action=\"edit\" data-question-id=\"{qid}\">Edit</button>"
        f"<button class=\"btn btn-danger btn-sm\" data-action=\"delete\" data-question-id=\"{qid}\">Delete</button>"
        "</td>"
        "</tr>"
    )


def render_question_rows(questions: Sequence[Question]) -> str:
    if not questions:
        return _empty_row("No questions registered.", len(QUESTION_COLUMNS))
    return "\n".join(_question_row(i, q) for i, q in enumerate(questions, start=1))


def render_question_table(test_type: str, rows_html: str) -> str:
    head = "".join(f"<th>{c}</th>" for c in QUESTION_COLUMNS)
    label = TEST_TYPE_LABELS.get(test_type, test_type)
    return (
        f"<section id=\"{_e(test_type)}-questions\" class=\"content-section\">"
        f"<h2>{_e(label)} questions</h2>"
        f"<button class=\"btn btn-primary\" data-test-type=\"{_e(test_type)}\">Add question</button>"
        "<table class=\"data-table\">"
        f"<thead><tr>{head}</tr></thead>"
        f"<tbody>{rows_html}</tbody>"
        "</table>"
        "</section>"
    )


def _profile_row(p: Profile) -> str:
    return (
        "<tr>"
        f"<td>{_e(p.name or '-')}</td>"
        f"<td>{_e(p.email or '-')}</td>"
        f"<td>{_e(p.organization or '-')}</td>"
        f"<td>{format_date(p.created_at)}</td>"
        f"<td>{'Yes' if p.is_admin else 'No'}</td>"
        "</tr>"
    )


def render_profiles_table(profiles: Sequence[Profile]) -> str:
    if not profiles:
        return "<div class=\"loading\">No users registered.</div>"
    rows = "\n".join(_profile_row(p) for p in profiles)
    return (
        "<table class=\"data-table\">"
        "<thead><tr><th>Name</th><th>Email</th><th>Organization</th><th>Joined</th><th>Admin</th></tr></thead>"
        f"<tbody>{rows}</tbody>"
        "</table>"
    )


def _result_payload(data: Any) -> str:
    if data is None or data == "":
        return "-"
    if isinstance(data, str):
        return data
    return json.dumps(data, ensure_ascii=False, sort_keys=True)


def _result_row(r: Result) -> str:
    return (
        "<tr>"
        f"<td>{_e(r.profile_name or '-')}</td>"
        f"<td>{_e(TEST_TYPE_LABELS.get(r.test_type, r.test_type))}</td>"
        f"<td><code>{_e(_result_payload(r.result_data))}</code></td>"
        f"<td>{format_date(r.created_at)}</td>"
        "</tr>"
    )


def render_results_table(results: Sequence[Result]) -> str:
    if not results:
        return "<div class=\"loading\">No test results yet.</div>"
    rows = "\n".join(_result_row(r) for r in results)
    return (
        "<table class=\"data-table\">"
        "<thead><tr><th>User</th><th>Test</th><th>Result</th><th>Taken</th></tr></thead>"
        f"<tbody>{rows}</tbody>"
        "</table>"
    )


def render_loading(what: str) -> str:
    return f"<div class=\"loading\">Loading {_e(what)}...</div>"


def render_load_error(what: str) -> str:
    return f"<div class=\"error\">Failed to load {_e(what)}.</div>"


def render_stats(stats: DashboardStats) -> str:
    cards = [
        ("total-users", "Users", stats.total_users),
        ("total-tests", "Tests taken", stats.total_tests),
        ("today-tests", "Tests today", stats.today_tests),
        ("total-questions", "Questions", stats.total_questions),
    ]
    body = "".join(
        f"<div class=\"stat-card\"><h3>{label}</h3><p id=\"{cid}\">{int(val)}</p></div>"
        for cid, label, val in cards
    )
    return f"<div class=\"stats\">{body}</div>"


def render_notice(message: str, kind: str = "success") -> str:
    return f"<div class=\"alert alert-{_e(kind)}\">{_e(message)}</div>"


def _nav(active: str) -> str:
    links: List[str] = []
    for sid, title in SECTION_TITLES.items():
        cls = "nav-link active" if sid == active else "nav-link"
        links.append(f"<a class=\"{cls}\" href=\"#{sid}\" data-section=\"{sid}\">{title}</a>")
    return "<nav>" + "".join(links) + "</nav>"


def render_dashboard_page(view: DashboardView, stats: DashboardStats | None = None, configured: bool = True) -> str:
    """Whole admin page for the given view state."""
    notices: Iterable[Dict[str, str]] = view.notices[-config.NOTICE_LIMIT:]
    alerts = "".join(render_notice(n.get("message", ""), n.get("kind", "success")) for n in notices)
    if not configured:
        alerts = render_notice("Backend is not configured; set SUPABASE_URL and SUPABASE_ANON_KEY.", "error") + alerts
    stats_html = render_stats(stats) if stats is not None else ""
    question_sections = "".join(
        render_question_table(tt, view.sections.get(f"{tt}-questions", render_loading("questions")))
        for tt in TEST_TYPES
    )
    users_html = view.sections.get("users", render_loading("users"))
    results_html = view.sections.get("results", render_loading("results"))
    return f"""<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8"/>
<title>Assessment Admin</title>
<style>
 body{{font-family:system-ui,-apple-system,Segoe UI,Roboto,Ubuntu,'Helvetica Neue',Arial}}
 .main-content{{max-width:1100px;margin:32px auto;padding:0 16px}}
 .alert{{padding:10px 14px;border-radius:6px;margin:8px 0}}
 .alert-success{{background:#e6f6ea;border:1px solid #5cb85c}}
 .alert-error{{background:#ffe7d9;border:1px solid #f5a623;color:#7a2d00}}
 .stats{{display:flex;gap:16px}}
 .data-table{{border-collapse:collapse;width:100%}}
 .data-table td,.data-table th{{border:1px solid #ddd;padding:6px;text-align:left}}
 .empty{{text-align:center}}
</style>
</head>
<body>
{_nav(view.active_section)}
<div class="main-content" data-active-section="{_e(view.active_section)}" data-active-test-type="{_e(view.active_test_type)}">
  {alerts}
  <section id="dashboard" class="content-section">{stats_html}</section>
  <section id="users" class="content-section">{users_html}</section>
  {question_sections}
  <section id="results" class="content-section">{results_html}</section>
</div>
</body>
</html>"""


__all__ = [
    "format_date",
    "render_dashboard_page",
    "render_load_error",
    "render_loading",
    "render_notice",
    "render_profiles_table",
    "render_question_rows",
    "render_question_table",
    "render_results_table",
    "render_stats",
]
