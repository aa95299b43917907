"""Repositories for financial records and their installments."""


from datetime import date

from sqlalchemy import delete, select

from app.domain.document import ProcessedDocument
from app.domain.financial import INSTALLMENT_PENDING, FinancialRecord, Installment
from app.repositories.base import BaseRepository


class FinancialRecordRepository(BaseRepository[FinancialRecord]):
    model = FinancialRecord

    async def list_for_document(self, document_id: str) -> list[FinancialRecord]:
        """All records of a document, newest first (installments eager-loaded)."""
        q = (
            self._base_query()
            .where(self.model.document_id == document_id)
            .order_by(self.model.created_at.desc())
            .execution_options(populate_existing=True)
        )
        return list((await self._session.execute(q)).scalars().all())

    async def get_fresh(self, record_id: str) -> FinancialRecord | None:
        """Reload a record and its installments, discarding stale session state."""
        q = (
            self._base_query()
            .where(self.model.id == record_id)
            .execution_options(populate_existing=True)
        )
        return (await self._session.execute(q)).scalars().first()

    async def delete_for_document(self, document_id: str) -> int:
        record_ids = select(self.model.id).where(self.model.document_id == document_id)
        await self._session.execute(
            delete(Installment).where(Installment.financial_record_id.in_(record_ids))
        )
        result = await self._session.execute(
            delete(self.model).where(self.model.document_id == document_id)
        )
        await self._session.flush()
        return result.rowcount

    async def delete_record(self, record_id: str) -> bool:
        await self._session.execute(
            delete(Installment).where(Installment.financial_record_id == record_id)
        )
        return await self.delete(record_id)


class InstallmentRepository(BaseRepository[Installment]):
    model = Installment

    async def upcoming_pending(
        self, start: date, end: date
    ) -> list[tuple[Installment, FinancialRecord, ProcessedDocument]]:
        """Pending installments due in ``[start, end]`` with their record and document."""
        q = (
            select(self.model, FinancialRecord, ProcessedDocument)
            .join(FinancialRecord, self.model.financial_record_id == FinancialRecord.id)
            .join(ProcessedDocument, FinancialRecord.document_id == ProcessedDocument.id)
            .where(
                self.model.status == INSTALLMENT_PENDING,
                self.model.due_date >= start,
                self.model.due_date <= end,
            )
            .order_by(self.model.due_date.asc(), self.model.number.asc())
        )
        rows = (await self._session.execute(q)).all()
        return [(inst, record, doc) for inst, record, doc in rows]
