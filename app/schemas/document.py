"""Document (ocr_processamento) request and response models."""


from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import Field

from app.schemas.common import CamelModel, Money
from app.schemas.proposal import NormalizedProposal


class DocumentSummary(CamelModel):
    """One row of the document list: identification plus the fields staff scan for."""

    id: str
    status: str | None = None
    document_type: str | None = None
    file_name: str | None = None
    created_at: datetime | None = None
    number: str = "-"
    number_label: str = "Documento"
    insured_name: str = ""
    cpf: str = ""  # masked
    plate: str = ""
    insurer: str = ""
    broker: str = ""
    total_price: Money = Decimal("0.00")


class DocumentDetail(CamelModel):
    id: str
    status: str | None = None
    document_type: str | None = None
    file_name: str | None = None
    created_at: datetime | None = None
    proposal: NormalizedProposal
    result: dict[str, Any] | None = None
    # policies not paid by credit card get their installments followed up
    payment_tracking: bool = False


class DocumentUpdate(CamelModel):
    """Replacement ``resultado`` blob; descriptive fields are upper-cased on save."""

    result: dict[str, Any] = Field(..., min_length=1)
    status: str | None = None
