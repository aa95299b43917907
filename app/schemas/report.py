"""Dashboard and report response models."""


from datetime import date
from decimal import Decimal

from app.schemas.common import CamelModel, Money
from app.schemas.document import DocumentSummary


class DashboardOut(CamelModel):
    total_documents: int
    latest: list[DocumentSummary]


class CountItem(CamelModel):
    key: str
    label: str
    count: int


class PremiumItem(CamelModel):
    document_id: str
    insured_name: str
    insurer: str
    premium: Money


class InsurerPremium(CamelModel):
    key: str
    label: str
    count: int
    total_premium: Money


class ReportSummary(CamelModel):
    period: str
    insurer: str | None = None
    count: int
    total_premium: Money = Decimal("0.00")
    total_premium_display: str = "R$ 0,00"
    by_insurer: list[CountItem]
    by_brand: list[CountItem]
    by_month: list[CountItem]
    by_status: list[CountItem]
    highest_premium: PremiumItem | None = None
    lowest_premium: PremiumItem | None = None
    premium_ranking: list[InsurerPremium]
    latest: list[DocumentSummary]


class UpcomingInstallment(CamelModel):
    installment_id: str
    financial_record_id: str
    document_id: str
    number: int
    amount: Money
    due_date: date | None = None
    due_status: str
    payment_method: str | None = None
    document_type: str | None = None
    document_number: str = "-"
    insurer: str = ""
    insured_name: str = ""
    cpf: str = ""  # masked
