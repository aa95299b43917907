"""Dashboard and report endpoints."""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.response import DataResponse
from app.db.base import get_db
from app.schemas.report import DashboardOut, ReportSummary, UpcomingInstallment
from app.services.report import ReportService

router = APIRouter(tags=["Reports"])


@router.get("/dashboard", response_model=DataResponse[DashboardOut])
async def dashboard(session: AsyncSession = Depends(get_db)):
    return {"data": await ReportService(session).dashboard()}


@router.get("/reports/summary", response_model=DataResponse[ReportSummary])
async def report_summary(
    period: str = Query(default="all", pattern="^(all|30d|60d)$"),
    insurer: Optional[str] = Query(default=None, description="Insurer name (any spelling)"),
    ranking_order: str = Query(default="desc", alias="rankingOrder", pattern="^(asc|desc)$"),
    session: AsyncSession = Depends(get_db),
):
    """Counts, premiums and rankings over the documents of a period."""
    summary = await ReportService(session).summary(
        period=period, insurer=insurer, ranking_order=ranking_order
    )
    return {"data": summary}


@router.get("/reports/upcoming-installments", response_model=DataResponse[list[UpcomingInstallment]])
async def upcoming_installments(
    start: Optional[date] = Query(default=None, description="Window start (default: today)"),
    end: Optional[date] = Query(default=None, description="Window end (default: start + 30 days)"),
    q: Optional[str] = Query(default=None, description="Proposal/policy number, insurer, insured or CPF"),
    session: AsyncSession = Depends(get_db),
):
    items = await ReportService(session).upcoming_installments(start=start, end=end, text=q)
    return {"data": items}
