from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional, Sequence

from . import config
from .backend import BackendClient, BackendResponse
from .errors import (
    BackendNotConfiguredError,
    BackendReadError,
    BackendWriteError,
    PartialWriteError,
    ValidationError,
)
from .types import TEST_TYPES, DashboardStats, Option, OptionDraft, Profile, Question, Result

log = logging.getLogger(__name__)


def _check(resp: BackendResponse, error_cls: type, what: str) -> BackendResponse:
    """Turn an error value into a raised error of ``error_cls``."""
    if resp.error is None:
        return resp
    if resp.error.kind == "unconfigured":
        raise BackendNotConfiguredError(resp.error.message)
    log.warning("%s failed: %s", what, resp.error.message)
    raise error_cls(f"{what} failed: {resp.error.message}")


def _check_test_type(test_type: str) -> str:
    tt = (test_type or "").strip().lower()
    if tt not in TEST_TYPES:
        raise ValidationError(f"Unknown test type: {test_type!r}")
    return tt


class QuestionRepository:
    """Questions and their options, kept consistent without transactions.

    Writes are ordered so that an option never references a missing question:
    parent first on create, children first on delete.
    """

    def __init__(self, client: BackendClient) -> None:
        self.client = client

    def _next_order(self, test_type: str) -> int:
        if config.QUESTION_ORDER_STRATEGY != "append":
            return config.QUESTION_ORDER_FIXED
        resp = self.client.table("questions").select("*", count="exact", head=True).eq("test_type", test_type).execute()
        _check(resp, BackendWriteError, "Counting questions")
        return (resp.count or 0) + 1

    def create_question_with_options(
        self, test_type: str, question_text: str, options: Sequence[OptionDraft]
    ) -> Question:
        tt = _check_test_type(test_type)
        text = (question_text or "").strip()
        if not text:
            raise ValidationError("Question text is required")
        if len(options) < config.MIN_OPTIONS:
            raise ValidationError(f"At least {config.MIN_OPTIONS} options are required")

        row = {"test_type": tt, "question_text": text, "question_order": self._next_order(tt)}
        resp = self.client.table("questions").insert(row).select().single().execute()
        _check(resp, BackendWriteError, "Saving question")
        question = Question.from_row(resp.data or {})
        if question.id is None:
            raise BackendWriteError("Saving question failed: backend returned no identifier")

        opt_rows = [opt.to_row(question.id) for opt in options]
        resp = self.client.table("options").insert(opt_rows).select().execute()
        if resp.error is not None:
            rolled_back = self._compensate(question.id)
            log.warning(
                "options insert for question %s failed (%s); rolled_back=%s",
                question.id, resp.error.message, rolled_back,
            )
            if rolled_back:
                msg = f"Saving options failed: {resp.error.message}; the question was not kept"
            else:
                msg = f"Saving options failed: {resp.error.message}; question {question.id} was left without options"
            raise PartialWriteError(msg, question_id=question.id, rolled_back=rolled_back)

        question.options = [Option.from_row(r) for r in (resp.data or [])]
        log.info("created %s question %s with %d options", tt, question.id, len(opt_rows))
        return question

    def _compensate(self, question_id: int) -> bool:
        resp = self.client.table("questions").delete().eq("id", question_id).execute()
        return resp.error is None

    def delete_question_cascade(self, question_id: int) -> None:
        resp = self.client.table("options").delete().eq("question_id", question_id).execute()
        _check(resp, BackendWriteError, "Deleting options")
        resp = self.client.table("questions").delete().eq("id", question_id).execute()
        _check(resp, BackendWriteError, "Deleting question")
        log.info("deleted question %s and its options", question_id)

    def list_questions(self, test_type: str) -> List[Question]:
        tt = _check_test_type(test_type)
        resp = (
            self.client.table("questions")
            .select("*, options (*)")
            .eq("test_type", tt)
            .order("question_order", ascending=True)
            .execute()
        )
        _check(resp, BackendReadError, "Loading questions")
        return [Question.from_row(r) for r in (resp.data or [])]

    def get_question(self, question_id: int) -> Optional[Question]:
        resp = self.client.table("questions").select("*, options (*)").eq("id", question_id).execute()
        _check(resp, BackendReadError, "Loading question")
        rows = resp.data or []
        return Question.from_row(rows[0]) if rows else None


class DashboardRepository:
    """Read-only views: headline counts, profiles and results."""

    def __init__(self, client: BackendClient) -> None:
        self.client = client

    def _count(self, table: str, since: Optional[str] = None) -> int:
        q = self.client.table(table).select("*", count="exact", head=True)
        if since:
            q = q.gte("created_at", since)
        resp = q.execute()
        if resp.error is not None:
            log.warning("count on %s failed: %s", table, resp.error.message)
            if resp.error.kind == "unconfigured":
                raise BackendNotConfiguredError(resp.error.message)
            return 0
        return resp.count or 0

    def stats(self, today: Optional[date] = None) -> DashboardStats:
        today = today or date.today()
        return DashboardStats(
            total_users=self._count("profiles"),
            total_tests=self._count("results"),
            today_tests=self._count("results", since=today.isoformat()),
            total_questions=self._count("questions"),
        )

    def list_profiles(self) -> List[Profile]:
        resp = self.client.table("profiles").select("*").order("created_at", ascending=False).execute()
        _check(resp, BackendReadError, "Loading users")
        return [Profile.from_row(r) for r in (resp.data or [])]

    def list_results(self) -> List[Result]:
        resp = (
            self.client.table("results")
            .select("*, profiles (name, email)")
            .order("created_at", ascending=False)
            .execute()
        )
        _check(resp, BackendReadError, "Loading results")
        return [Result.from_row(r) for r in (resp.data or [])]


__all__ = ["QuestionRepository", "DashboardRepository"]
