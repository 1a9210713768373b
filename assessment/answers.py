from dataclasses import dataclass
from typing import Any, Union

from .catalog import Question, QuestionType, get_question


@dataclass(frozen=True)
class ScalarAnswer:
    """Single-select, text, email, textarea and slider answers."""

    value: str | int | float | bool | None

    def to_json(self):
        return self.value


@dataclass(frozen=True)
class MultiSelectAnswer:
    """Multi-select and ranking answers. For ranking questions the order is the rank."""

    values: tuple[str, ...]
    ranked: bool = False

    def to_json(self):
        return list(self.values)


@dataclass(frozen=True)
class StructuredAnswer:
    """Answers that are objects, e.g. the grouped existing tools."""

    fields: dict

    def to_json(self):
        return dict(self.fields)


Answer = Union[ScalarAnswer, MultiSelectAnswer, StructuredAnswer]


def parse_answer(question_key: str, raw: Any) -> Answer:
    question = get_question(question_key)
    if question is not None:
        if question.is_multi_valued:
            values = raw if isinstance(raw, list) else ([] if raw in (None, "") else [raw])
            return MultiSelectAnswer(tuple(str(v) for v in values), ranked=question.type == QuestionType.RANKING)
        if isinstance(raw, dict):
            return StructuredAnswer(raw)
        return ScalarAnswer(raw)
    # keys outside the catalog are typed by their stored shape
    if isinstance(raw, list):
        return MultiSelectAnswer(tuple(str(v) for v in raw))
    if isinstance(raw, dict):
        return StructuredAnswer(raw)
    return ScalarAnswer(raw)


def is_answered(raw: Any, question: Question | None = None) -> bool:
    """Multi-select and ranking questions need a non-empty list, the rest any value but None or ""."""
    if question is not None and question.is_multi_valued:
        return isinstance(raw, list) and len(raw) > 0
    if raw is None or (isinstance(raw, str) and raw == ""):
        return False
    if question is None and isinstance(raw, (list, tuple)):
        return len(raw) > 0
    return True
