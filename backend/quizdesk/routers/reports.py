from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from quizdesk.core.errors import parse_uuid
from quizdesk.core.security import get_current_identity, require_admin, require_author
from quizdesk.core.sessions import Identity
from quizdesk.db.session import get_db
from quizdesk.schemas.report import LeaderboardEntry, QuizAnalyticsResponse, SystemSummaryResponse, UserReportItem
from quizdesk.services.exports import user_report_csv, user_report_pdf
from quizdesk.services.reports import ReportService

router = APIRouter(prefix="/reports", tags=["reports"])

EXPORT_BASENAME = "my-quiz-results"


def _attachment(filename: str) -> dict[str, str]:
    return {"Content-Disposition": f'attachment; filename="{filename}"'}


@router.get("/leaderboard/{quiz_id}", response_model=list[LeaderboardEntry])
def leaderboard(
    quiz_id: str,
    db: Session = Depends(get_db),
    _: Identity = Depends(require_author),
):
    return ReportService(db).leaderboard(parse_uuid(quiz_id, field="quiz id"))


@router.get("/analytics/{quiz_id}", response_model=QuizAnalyticsResponse)
def analytics(
    quiz_id: str,
    db: Session = Depends(get_db),
    _: Identity = Depends(require_author),
):
    return ReportService(db).analytics(parse_uuid(quiz_id, field="quiz id"))


@router.get("/user", response_model=list[UserReportItem])
def user_report(db: Session = Depends(get_db), identity: Identity = Depends(get_current_identity)):
    return ReportService(db).user_report(identity)


@router.get("/user/export/csv")
def export_user_report_csv(db: Session = Depends(get_db), identity: Identity = Depends(get_current_identity)):
    rows = ReportService(db).user_report(identity)
    return Response(
        content=user_report_csv(rows),
        media_type="text/csv",
        headers=_attachment(f"{EXPORT_BASENAME}.csv"),
    )


@router.get("/user/export/pdf")
def export_user_report_pdf(db: Session = Depends(get_db), identity: Identity = Depends(get_current_identity)):
    rows = ReportService(db).user_report(identity)
    return Response(
        content=user_report_pdf(rows, username=identity.username),
        media_type="application/pdf",
        headers=_attachment(f"{EXPORT_BASENAME}.pdf"),
    )


@router.get("/system", response_model=SystemSummaryResponse)
def system_summary(db: Session = Depends(get_db), _: Identity = Depends(require_admin)):
    return ReportService(db).system_summary()
