from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, List, Sequence

from . import config
from .errors import ValidationError
from .types import OptionDraft

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_score(raw: Any) -> int:
    """Integer value of a score input; blank or non-numeric gives 0.

    Range is not enforced here: 0-10 is only a hint on the input widget.
    """
    if raw is None or isinstance(raw, bool):
        return 0
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if math.isfinite(raw) else 0
    m = _LEADING_INT.match(str(raw))
    return int(m.group(1)) if m else 0


@dataclass
class OptionInput:
    text: str = ""
    scores: List[Any] = field(default_factory=lambda: ["", "", "", ""])


def _blank_options() -> List[OptionInput]:
    return [OptionInput() for _ in range(config.MIN_OPTIONS)]


@dataclass
class QuestionForm:
    """Raw state of the add-question form as entered by the admin."""

    test_type: str = "disc"
    question_text: str = ""
    options: List[OptionInput] = field(default_factory=_blank_options)

    def reset(self) -> None:
        self.question_text = ""
        self.options = _blank_options()

    def add_option(self) -> OptionInput:
        opt = OptionInput()
        self.options.append(opt)
        return opt

    def remove_option(self, index: int) -> OptionInput:
        if len(self.options) <= config.MIN_OPTIONS:
            raise ValidationError(f"At least {config.MIN_OPTIONS} options are required.", option_index=index)
        if index < 0 or index >= len(self.options):
            raise ValidationError(f"No option at position {index + 1}.", option_index=index)
        return self.options.pop(index)


def _collect_option(index: int, opt: OptionInput) -> OptionDraft:
    text = (opt.text or "").strip()
    if not text:
        raise ValidationError(f"Enter the text for option {index + 1}.", option_index=index)
    raw = list(opt.scores or [])[:4]
    raw += [""] * (4 - len(raw))
    return OptionDraft(text=text, scores=[parse_score(v) for v in raw])


def validate_and_collect(form: QuestionForm) -> List[OptionDraft]:
    """Check the form and return the option rows ready for writing.

    Stops at the first problem; ``ValidationError.option_index`` names the
    failing option (0-based) when the problem is in an option.
    """
    if not (form.question_text or "").strip():
        raise ValidationError("Enter the question text.")
    options: Sequence[OptionInput] = form.options or []
    if len(options) < config.MIN_OPTIONS:
        raise ValidationError(f"At least {config.MIN_OPTIONS} options are required.")
    return [_collect_option(i, opt) for i, opt in enumerate(options)]


__all__ = ["OptionInput", "QuestionForm", "parse_score", "validate_and_collect"]
