"""SQLAlchemy ORM models for a document's financial data and its installments."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.domain.mixins import CreatedAtMixin, UUIDPrimaryKeyMixin

# fonte values
SOURCE_DOCUMENT = "documento"
SOURCE_MANUAL = "manual"

# parcelas_pagamento.status values
INSTALLMENT_PENDING = "pendente"
INSTALLMENT_PAID = "pago"
INSTALLMENT_LATE = "atrasado"
INSTALLMENT_STATUSES = (INSTALLMENT_PENDING, INSTALLMENT_PAID, INSTALLMENT_LATE)


class FinancialRecord(Base, UUIDPrimaryKeyMixin, CreatedAtMixin):
    """Payment data recovered from (or confirmed for) one document."""

    __tablename__ = "dados_financeiros"

    document_id: Mapped[str] = mapped_column(
        "documento_id",
        String(36),
        ForeignKey("ocr_processamento.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    payment_method: Mapped[Optional[str]] = mapped_column(
        "forma_pagamento", String(50), nullable=True
    )
    installment_count: Mapped[int] = mapped_column(
        "quantidade_parcelas", Integer, default=1, nullable=False
    )
    total_amount: Mapped[Decimal] = mapped_column(
        "valor_total", Numeric(12, 2), default=Decimal("0.00"), nullable=False
    )
    net_premium: Mapped[Decimal] = mapped_column(
        "premio_liquido", Numeric(12, 2), default=Decimal("0.00"), nullable=False
    )
    gross_premium: Mapped[Decimal] = mapped_column(
        "premio_bruto", Numeric(12, 2), default=Decimal("0.00"), nullable=False
    )
    iof: Mapped[Optional[Decimal]] = mapped_column("iof", Numeric(12, 2), nullable=True)
    document_type: Mapped[Optional[str]] = mapped_column(
        "tipo_documento", String(20), nullable=True
    )
    # "documento" (extracted) | "manual" (confirmed by staff) | "misto"
    source: Mapped[str] = mapped_column("fonte", String(20), default=SOURCE_DOCUMENT, nullable=False)
    confirmed: Mapped[bool] = mapped_column(
        "dados_confirmados", Boolean, default=False, nullable=False
    )
    last_updated_at: Mapped[Optional[datetime]] = mapped_column(
        "ultima_atualizacao", DateTime(timezone=True), nullable=True
    )

    document: Mapped["ProcessedDocument"] = relationship(
        back_populates="financial_records", lazy="noload"
    )
    installments: Mapped[List["Installment"]] = relationship(
        back_populates="financial_record",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="Installment.number",
    )


class Installment(Base, UUIDPrimaryKeyMixin):
    __tablename__ = "parcelas_pagamento"

    financial_record_id: Mapped[str] = mapped_column(
        "dados_financeiros_id",
        String(36),
        ForeignKey("dados_financeiros.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    number: Mapped[int] = mapped_column("numero_parcela", Integer, nullable=False)
    amount: Mapped[Decimal] = mapped_column("valor", Numeric(12, 2), nullable=False)
    due_date: Mapped[Optional[date]] = mapped_column(
        "data_vencimento", Date, nullable=True, index=True
    )
    paid_date: Mapped[Optional[date]] = mapped_column("data_pagamento", Date, nullable=True)
    # "pendente" | "pago" | "atrasado"
    status: Mapped[str] = mapped_column(
        String(20), default=INSTALLMENT_PENDING, nullable=False, index=True
    )

    financial_record: Mapped["FinancialRecord"] = relationship(back_populates="installments")
