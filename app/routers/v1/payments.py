"""Bulk payment operations (per-document schedules live under /documents)."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.response import DataResponse
from app.db.base import get_db
from app.schemas.financial import RebuildResult
from app.services.payment import PaymentService

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("/rebuild", response_model=DataResponse[RebuildResult])
async def rebuild_payments(session: AsyncSession = Depends(get_db)):
    """Delete and recreate the financial data of every proposal and policy."""
    result = await PaymentService(session).rebuild_all()
    return {"data": RebuildResult(**result)}
