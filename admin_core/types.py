from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

TEST_TYPES: Tuple[str, ...] = ("disc", "mbti", "stress")

# one integer per DiSC dimension, in D, I, S, C order
SCORE_COLUMNS: Tuple[str, ...] = ("disc_d", "disc_i", "disc_s", "disc_c")


@dataclass
class Option:
    id: Optional[int]; question_id: int; option_text: str
    disc_d: int = 0
    disc_i: int = 0
    disc_s: int = 0
    disc_c: int = 0

    @property
    def scores(self) -> List[int]:
        return [self.disc_d, self.disc_i, self.disc_s, self.disc_c]

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Option":
        return cls(
            id=row.get("id"),
            question_id=row.get("question_id"),
            option_text=row.get("option_text") or "",
            **{col: int(row.get(col) or 0) for col in SCORE_COLUMNS},
        )


@dataclass
class Question:
    id: Optional[int]; test_type: str; question_text: str
    question_order: int = 1
    created_at: Optional[str] = None
    options: List[Option] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Question":
        return cls(
            id=row.get("id"),
            test_type=row.get("test_type") or "",
            question_text=row.get("question_text") or "",
            question_order=int(row.get("question_order") or 0),
            created_at=row.get("created_at"),
            options=[Option.from_row(o) for o in (row.get("options") or [])],
        )


@dataclass
class OptionDraft:
    """One validated option row from the add-question form, not yet written."""
    text: str
    scores: List[int] = field(default_factory=lambda: [0, 0, 0, 0])

    def to_row(self, question_id: int) -> Dict[str, Any]:
        row: Dict[str, Any] = {"question_id": question_id, "option_text": self.text}
        for col, val in zip(SCORE_COLUMNS, self.scores):
            row[col] = val
        return row


@dataclass
class Profile:
    id: Any; name: Optional[str] = None; email: Optional[str] = None
    organization: Optional[str] = None
    is_admin: bool = False
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Profile":
        return cls(
            id=row.get("id"),
            name=row.get("name"),
            email=row.get("email"),
            organization=row.get("organization"),
            is_admin=bool(row.get("is_admin")),
            created_at=row.get("created_at"),
        )


@dataclass
class Result:
    id: Any; profile_id: Any; test_type: str
    result_data: Any = None
    created_at: Optional[str] = None
    profile_name: Optional[str] = None
    profile_email: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Result":
        prof = row.get("profiles") or {}
        return cls(
            id=row.get("id"),
            profile_id=row.get("profile_id"),
            test_type=row.get("test_type") or "",
            result_data=row.get("result_data"),
            created_at=row.get("created_at"),
            profile_name=prof.get("name"),
            profile_email=prof.get("email"),
        )


@dataclass
class DashboardStats:
    total_users: int = 0
    total_tests: int = 0
    today_tests: int = 0
    total_questions: int = 0


@dataclass
class DashboardView:
    """Displayed state of the dashboard, passed explicitly into every refresh."""
    active_section: str = "dashboard"
    active_test_type: str = "disc"
    sections: Dict[str, str] = field(default_factory=dict)
    notices: List[Dict[str, str]] = field(default_factory=list)

    def notify(self, message: str, kind: str = "success") -> None:
        self.notices.append({"kind": kind, "message": message})
