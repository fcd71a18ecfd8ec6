import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import get_household, get_report_policy
from ..infra.idempotency import (
    idempotency_precheck,
    idempotency_store_result,
    idempotency_clear_key,
)
from ..models import Household, WeeklyReport, ReportTrend
from ..reports.generator import WeeklyReportGenerator
from ..reports.persister import TRACKED_METRICS
from ..schemas import (
    GenerateReportRequest,
    WeeklyReportOut,
    WeeklyReportSummaryOut,
    TrendSeriesOut,
    TrendPointOut,
)
from ..settings import ReportPolicy

router = APIRouter()
logger = logging.getLogger("mealreports.reports")


def error_response(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": message})


@router.post("/reports/weekly")
async def generate_weekly_report(
    request: Request,
    body: GenerateReportRequest,
    db: Session = Depends(get_db),
    policy: ReportPolicy = Depends(get_report_policy),
):
    """
    Compute (or recompute) the weekly report for a household.

    201 {report, created: true} on first computation, 200 {report, updated: true} after.
    Every failure is a 400 {error}.
    """
    if not body.household_id:
        return error_response("householdId is required")

    idem = await idempotency_precheck(request, scope_id=body.household_id, route_key="weekly_report")
    if isinstance(idem, JSONResponse):
        return idem

    try:
        result = WeeklyReportGenerator(db, policy).generate(body.household_id, body.week_start_date)
    except Exception as e:
        logger.exception(f"Error generating report for household {body.household_id}")
        db.rollback()
        if idem:
            await idempotency_clear_key(idem[0])
        return error_response(str(e))

    report = WeeklyReportOut.model_validate(result.report).model_dump(mode="json")
    if result.created:
        status, content = 201, {"report": report, "created": True}
    else:
        status, content = 200, {"report": report, "updated": True}

    if idem:
        await idempotency_store_result(idem[0], idem[1], status=status, body=content)
    return JSONResponse(status_code=status, content=content)


@router.get("/households/{household_id}/reports", response_model=list[WeeklyReportSummaryOut])
def list_reports(
    household: Household = Depends(get_household),
    limit: int = Query(12, ge=1, le=104),
    db: Session = Depends(get_db),
):
    """Report history, newest week first."""
    stmt = (
        select(WeeklyReport)
        .where(WeeklyReport.household_id == household.id)
        .order_by(WeeklyReport.week_start_date.desc())
        .limit(limit)
    )
    return list(db.scalars(stmt))


@router.get("/reports/{report_id}", response_model=WeeklyReportOut)
def get_report(report_id: str, db: Session = Depends(get_db)):
    """Report with insights. The first read marks it viewed."""
    report = db.get(WeeklyReport, report_id)
    if report is None:
        raise HTTPException(status_code=404, detail="Report not found")

    if report.viewed_at is None:
        report.viewed_at = datetime.now(timezone.utc)
        report.status = "viewed"
        db.commit()
        db.refresh(report)
    return report


@router.get("/households/{household_id}/trends/{metric_name}", response_model=TrendSeriesOut)
def get_trend(
    metric_name: str,
    household: Household = Depends(get_household),
    limit: Optional[int] = Query(None, ge=1, le=104, description="Most recent N weeks"),
    db: Session = Depends(get_db),
):
    """Historical values of one tracked metric, oldest week first."""
    if metric_name not in TRACKED_METRICS:
        raise HTTPException(status_code=404, detail=f"Unknown metric '{metric_name}'")

    stmt = (
        select(ReportTrend)
        .where(
            ReportTrend.household_id == household.id,
            ReportTrend.metric_name == metric_name,
        )
        .order_by(ReportTrend.week_start.desc())
    )
    if limit:
        stmt = stmt.limit(limit)
    points = list(db.scalars(stmt))
    points.reverse()

    return TrendSeriesOut(
        household_id=household.id,
        metric_name=metric_name,
        points=[TrendPointOut.model_validate(p) for p in points],
    )
