"""SQLAlchemy ORM model for OCR-processed documents (proposals, policies, endorsements).

Rows in ``ocr_processamento`` are written by the upstream OCR/automation
pipeline; this service reads them, edits ``resultado`` and deletes them.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import JSON, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.domain.mixins import UUIDPrimaryKeyMixin, _now

# tipo_documento values
DOCUMENT_TYPES = ("proposta", "apolice", "endosso", "cancelado")
UPLOADABLE_DOCUMENT_TYPES = ("proposta", "apolice", "endosso")


class ProcessedDocument(Base, UUIDPrimaryKeyMixin):
    __tablename__ = "ocr_processamento"

    status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, index=True)
    # "proposta" | "apolice" | "endosso" | "cancelado"
    document_type: Mapped[Optional[str]] = mapped_column(
        "tipo_documento", String(20), nullable=True, index=True
    )
    file_name: Mapped[Optional[str]] = mapped_column("nome_arquivo", String(255), nullable=True)

    # Structured extraction produced by the OCR pipeline
    result: Mapped[Optional[Any]] = mapped_column("resultado", JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        "criado_em",
        DateTime(timezone=True),
        default=_now,
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    financial_records: Mapped[List["FinancialRecord"]] = relationship(
        back_populates="document", lazy="noload", passive_deletes=True
    )
