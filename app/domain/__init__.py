"""Domain package — all ORM models are imported here so Alembic autogenerate detects them.

Folder intent:
  document.py   — OCR-processed documents (ocr_processamento)
  financial.py  — Financial data and payment installments
  quote.py      — Saved quote texts (cotacoes)
  audit.py      — Immutable audit trail (never updated or deleted)
  mixins.py     — Shared UUID primary key and created_at columns
"""

from app.domain.audit import AuditTrail
from app.domain.document import ProcessedDocument
from app.domain.financial import FinancialRecord, Installment
from app.domain.quote import Quote

__all__ = [
    "AuditTrail",
    "FinancialRecord",
    "Installment",
    "ProcessedDocument",
    "Quote",
]
