"""Repository for OCR-processed documents."""


from typing import Any

from sqlalchemy import delete, or_, select

from app.domain.document import ProcessedDocument
from app.domain.financial import FinancialRecord, Installment
from app.repositories.base import BaseRepository

# Searchable fields inside ``resultado`` (JSON paths)
SEARCH_PATHS: dict[str, tuple[str, str]] = {
    "name": ("segurado", "nome"),
    "cpf": ("segurado", "cpf"),
    "plate": ("veiculo", "placa"),
    "number": ("proposta", "numero"),
    "policy": ("proposta", "apolice"),
}


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class DocumentRepository(BaseRepository[ProcessedDocument]):
    model = ProcessedDocument

    async def search_field(self, field: str, term: str) -> list[ProcessedDocument]:
        """Case-insensitive substring match on one ``resultado`` field, newest first."""
        path = SEARCH_PATHS[field]
        pattern = f"%{_escape_like(term)}%"
        q = (
            self._base_query()
            .where(self.model.result[path].as_string().ilike(pattern, escape="\\"))
            .order_by(self.model.created_at.desc())
        )
        return list((await self._session.execute(q)).scalars().all())

    async def list_by_types(
        self, document_types: tuple[str, ...], exclude_status: str | None = None
    ) -> list[ProcessedDocument]:
        q = self._base_query().where(self.model.document_type.in_(document_types))
        if exclude_status is not None:
            q = q.where(or_(self.model.status.is_(None), self.model.status != exclude_status))
        q = q.order_by(self.model.created_at.desc())
        return list((await self._session.execute(q)).scalars().all())

    async def list_all(self, filters: dict[str, Any] | None = None) -> list[ProcessedDocument]:
        """Every document, newest first (reports aggregate in memory)."""
        q = self._apply_filters(self._base_query(), filters).order_by(self.model.created_at.desc())
        return list((await self._session.execute(q)).scalars().all())

    async def latest(self, limit: int) -> list[ProcessedDocument]:
        q = self._base_query().order_by(self.model.created_at.desc()).limit(limit)
        return list((await self._session.execute(q)).scalars().all())

    async def delete_with_financials(self, document_id: str) -> bool:
        """Delete a document together with its financial records and installments.

        SQLite does not enforce ``ON DELETE CASCADE`` without a pragma, so the
        children are removed explicitly.
        """
        record_ids = select(FinancialRecord.id).where(FinancialRecord.document_id == document_id)
        await self._session.execute(
            delete(Installment).where(Installment.financial_record_id.in_(record_ids))
        )
        await self._session.execute(
            delete(FinancialRecord).where(FinancialRecord.document_id == document_id)
        )
        return await self.delete(document_id)
