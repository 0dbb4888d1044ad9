from __future__ import annotations

import csv
import io
from datetime import datetime
from typing import Any, Iterable, Mapping

from fpdf import FPDF
from fpdf.enums import XPos, YPos

CSV_FIELDS = [
    ("Quiz", "quiz"),
    ("Score", "score"),
    ("Total Questions", "total_questions"),
    ("Submitted At", "submitted_at"),
]


def _fmt_ts(value: Any) -> str:
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M")
    return str(value or "")


def _iso(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value or "")


def _latin1(text: str) -> str:
    # Core PDF fonts only cover latin-1.
    return str(text).encode("latin-1", errors="replace").decode("latin-1")


def user_report_csv(rows: Iterable[Mapping[str, Any]]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow([label for label, _ in CSV_FIELDS])
    for r in rows:
        writer.writerow(
            [
                r.get("quiz") or "",
                "" if r.get("score") is None else r.get("score"),
                r.get("total_questions", 0),
                _iso(r.get("submitted_at")),
            ]
        )
    return buf.getvalue()


def user_report_pdf(rows: Iterable[Mapping[str, Any]], *, username: str) -> bytes:
    pdf = FPDF()
    pdf.set_margins(14, 14, 14)
    pdf.add_page()

    pdf.set_font("Helvetica", "B", 18)
    pdf.cell(0, 10, "My Quiz Results", align="C", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_font("Helvetica", size=10)
    pdf.cell(0, 6, _latin1(f"User: {username}"), align="C", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(6)

    pdf.set_font("Helvetica", size=12)
    count = 0
    for r in rows:
        line = f"{r.get('quiz')} - {r.get('score')}/{r.get('total_questions')} - {_fmt_ts(r.get('submitted_at'))}"
        pdf.multi_cell(0, 7, _latin1(line), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.ln(2)
        count += 1

    if count == 0:
        pdf.cell(0, 7, "No submitted quizzes yet.", new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    return bytes(pdf.output())
