from __future__ import annotations

import logging
from typing import List

from .config import LOG_LEVEL
from .forms import OptionInput, QuestionForm
from .memory_backend import MemoryBackendClient
from .repository import DashboardRepository, QuestionRepository
from .sync import ListSyncController, question_section
from .types import TEST_TYPES, DashboardView


def _configure_logging() -> None:
    logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO), format="[%(levelname)s] %(message)s")


def _seed(client: MemoryBackendClient) -> None:
    profiles = client.seed(
        "profiles",
        [
            {"name": "Smoke Admin", "email": "admin@example.com", "organization": "Ops", "is_admin": True},
            {"name": "Smoke User", "email": "user@example.com", "organization": "QA", "is_admin": False},
        ],
    )
    client.seed(
        "results",
        [{"profile_id": profiles[1]["id"], "test_type": "disc", "result_data": {"D": 12, "I": 8, "S": 5, "C": 3}}],
    )


def _form(test_type: str, text: str) -> QuestionForm:
    return QuestionForm(
        test_type=test_type,
        question_text=text,
        options=[
            OptionInput(text="Take charge", scores=["5", "0", "0", "0"]),
            OptionInput(text="Rally the team", scores=["0", "5", "", ""]),
            OptionInput(text="Check the details", scores=["", "", "", "5"]),
        ],
    )


def run_smoke(argv: List[str] | None = None) -> int:
    _configure_logging()
    client = MemoryBackendClient()
    _seed(client)
    questions = QuestionRepository(client)
    sync = ListSyncController(questions, DashboardRepository(client))
    view = DashboardView()

    created = []
    for tt in TEST_TYPES:
        q = sync.create_and_refresh(view, _form(tt, f"Smoke {tt} question"))
        logging.info("Created %s question id=%s options=%d", tt, q.id, len(q.options))
        created.append(q)

    stats = sync.dashboard.stats()
    logging.info(
        "Stats: users=%d tests=%d today=%d questions=%d",
        stats.total_users, stats.total_tests, stats.today_tests, stats.total_questions,
    )

    target = created[0]
    sync.delete_and_refresh(view, target.id, target.test_type)
    left = [r for r in client.rows("options") if r.get("question_id") == target.id]
    listed = sync.refresh_list(view, target.test_type) or []
    if left or any(q.id == target.id for q in listed):
        logging.error("Cascade delete left data behind for question %s", target.id)
        return 1

    sync.refresh_profiles(view)
    sync.refresh_results(view)
    logging.info("Sections rendered: %s", ", ".join(sorted(view.sections)))
    logging.info("Rows for %s: %d chars", target.test_type, len(view.sections[question_section(target.test_type)]))
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(run_smoke())
