from __future__ import annotations

import pytest

from admin_core.forms import OptionInput, QuestionForm
from admin_core.memory_backend import MemoryBackendClient
from admin_core.repository import DashboardRepository, QuestionRepository
from admin_core.sync import ListSyncController
from admin_core.types import DashboardView


def build_form(
    *,
    test_type: str = "disc",
    question_text: str = "Pick one",
    options: list[tuple[str, list]] | None = None,
) -> QuestionForm:
    """Form state as the admin would submit it."""

    if options is None:
        options = [("A", [5, 0, 0, 0]), ("B", [0, 5, 0, 0])]
    return QuestionForm(
        test_type=test_type,
        question_text=question_text,
        options=[OptionInput(text=text, scores=list(scores)) for text, scores in options],
    )


def seed_question(client: MemoryBackendClient, *, test_type: str = "disc", order: int = 1,
                  text: str = "Seeded", n_options: int = 2, created_at: str | None = None) -> dict:
    row = {"test_type": test_type, "question_text": text, "question_order": order}
    if created_at:
        row["created_at"] = created_at
    (question,) = client.seed("questions", [row])
    client.seed(
        "options",
        [
            {"question_id": question["id"], "option_text": f"{text} #{i}", "disc_d": i, "disc_i": 0, "disc_s": 0, "disc_c": 0}
            for i in range(n_options)
        ],
    )
    return question


@pytest.fixture
def client() -> MemoryBackendClient:
    return MemoryBackendClient()


@pytest.fixture
def repo(client) -> QuestionRepository:
    return QuestionRepository(client)


@pytest.fixture
def sync(client, repo) -> ListSyncController:
    return ListSyncController(repo, DashboardRepository(client))


@pytest.fixture
def view() -> DashboardView:
    return DashboardView()
