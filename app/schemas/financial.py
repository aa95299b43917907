"""Financial record / installment schemas."""


from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import Field

from app.schemas.common import CamelModel, Money

InstallmentStatus = Literal["pendente", "pago", "atrasado"]


class InstallmentOut(CamelModel):
    id: str
    number: int
    amount: Money
    due_date: date | None = None
    paid_date: date | None = None
    status: str
    # due_today | overdue | next_week | pending (only meaningful while pendente)
    due_status: str | None = None


class FinancialRecordOut(CamelModel):
    id: str
    document_id: str
    payment_method: str | None = None
    installment_count: int
    total_amount: Money
    net_premium: Money
    gross_premium: Money
    iof: Money | None = None
    document_type: str | None = None
    source: str
    confirmed: bool
    last_updated_at: datetime | None = None
    created_at: datetime | None = None
    installments: list[InstallmentOut] = Field(default_factory=list)


class InstallmentUpdate(CamelModel):
    id: str
    amount: Decimal | None = Field(default=None, ge=0)
    due_date: date | None = None
    paid_date: date | None = None
    status: InstallmentStatus | None = None


class FinancialRecordUpdate(CamelModel):
    """Staff confirmation of a payment schedule."""

    payment_method: str | None = None
    installments: list[InstallmentUpdate] = Field(default_factory=list)


class FinancialExtractionOut(CamelModel):
    """What the extractor recovers from a document, without persisting anything."""

    payment_method: str
    installment_count: int
    total_amount: Money
    net_premium: Money
    gross_premium: Money
    iof: Money
    installment_amounts: list[Money]
    source: str | None = None


class RebuildResult(CamelModel):
    total: int
    succeeded: int
    failed: int
