from __future__ import annotations

import logging
from typing import List, Optional

from .errors import BackendNotConfiguredError, BackendReadError
from .forms import QuestionForm, validate_and_collect
from .render import (
    render_load_error,
    render_loading,
    render_profiles_table,
    render_question_rows,
    render_results_table,
)
from .repository import DashboardRepository, QuestionRepository
from .types import DashboardView, Profile, Question, Result

log = logging.getLogger(__name__)


def question_section(test_type: str) -> str:
    return f"{test_type}-questions"


class ListSyncController:
    """Keeps the displayed lists in step with the backend.

    There is no local cache: after every create or delete the list for the
    affected test type is fetched again and its section body replaced.
    """

    def __init__(self, questions: QuestionRepository, dashboard: Optional[DashboardRepository] = None) -> None:
        self.questions = questions
        self.dashboard = dashboard or DashboardRepository(questions.client)

    def refresh_list(self, view: DashboardView, test_type: str) -> Optional[List[Question]]:
        try:
            items = self.questions.list_questions(test_type)
        except (BackendReadError, BackendNotConfiguredError) as exc:
            # previous rows stay on screen
            log.warning("refresh of %s questions failed: %s", test_type, exc.message)
            view.notify("Failed to load questions.", "error")
            return None
        view.active_test_type = test_type
        view.sections[question_section(test_type)] = render_question_rows(items)
        return items

    def create_and_refresh(self, view: DashboardView, form: QuestionForm) -> Question:
        drafts = validate_and_collect(form)
        question = self.questions.create_question_with_options(form.test_type, form.question_text, drafts)
        view.notify("Question added.")
        self.refresh_list(view, question.test_type)
        return question

    def delete_and_refresh(self, view: DashboardView, question_id: int, test_type: str) -> None:
        self.questions.delete_question_cascade(question_id)
        view.notify("Question deleted.")
        self.refresh_list(view, test_type)

    def refresh_profiles(self, view: DashboardView) -> Optional[List[Profile]]:
        view.sections["users"] = render_loading("users")
        try:
            profiles = self.dashboard.list_profiles()
        except (BackendReadError, BackendNotConfiguredError) as exc:
            log.warning("loading users failed: %s", exc.message)
            view.sections["users"] = render_load_error("users")
            return None
        view.sections["users"] = render_profiles_table(profiles)
        return profiles

    def refresh_results(self, view: DashboardView) -> Optional[List[Result]]:
        view.sections["results"] = render_loading("results")
        try:
            results = self.dashboard.list_results()
        except (BackendReadError, BackendNotConfiguredError) as exc:
            log.warning("loading results failed: %s", exc.message)
            view.sections["results"] = render_load_error("results")
            return None
        view.sections["results"] = render_results_table(results)
        return results


__all__ = ["ListSyncController", "question_section"]
