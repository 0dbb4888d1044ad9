"""Answer canonicalization and auto-grading.

Stored ``correct_answer`` values and submitted answers are both JSON data and
may disagree on shape for the same logical answer (``"True"`` vs ``true``,
``2`` vs ``2.0``). Both sides go through :func:`canonical_answer` before they
are compared, and nothing else in the code base compares answers.

Rules:

* ``None`` stays ``None`` and never matches anything.
* Lists become a sorted tuple of canonical element strings, so multi-select
  answers are order independent. A list never equals a scalar.
* Booleans become ``"true"`` / ``"false"``; strings spelling a boolean in any
  case are lowered to the same form.
* Integral numbers become their integer text, other numbers their ``repr``.
* Any other string is kept verbatim: free text is matched exactly, without
  trimming or case folding, and is otherwise left for manual grading.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from quizdesk.models.quiz import Question

_BOOL_WORDS = {"true", "false"}


def _canonical_scalar(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    if isinstance(value, str):
        lowered = value.lower()
        return lowered if lowered in _BOOL_WORDS else value
    return json.dumps(value, sort_keys=True, ensure_ascii=False)


def canonical_answer(value: Any) -> str | tuple[str, ...] | None:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return tuple(sorted(_canonical_scalar(v) for v in value))
    return _canonical_scalar(value)


def is_correct(submitted: Any, expected: Any) -> bool:
    got = canonical_answer(submitted)
    want = canonical_answer(expected)
    if got is None or want is None:
        return False
    return got == want


def question_points(question: Question) -> int:
    return 1 if question.points is None else int(question.points)


@dataclass
class GradeReport:
    score: int = 0
    max_score: int = 0
    correct: dict[str, bool] = field(default_factory=dict)


def grade(questions: Iterable[Question], answers: Mapping[str, Any] | None) -> GradeReport:
    answers = answers or {}
    report = GradeReport()
    for q in questions:
        qid = str(q.id)
        pts = question_points(q)
        ok = is_correct(answers.get(qid), q.correct_answer)
        report.correct[qid] = ok
        report.max_score += pts
        if ok:
            report.score += pts
    return report
