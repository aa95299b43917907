"""Payment service — financial records and installment schedules of documents.

A document's schedule is built once from its OCR payload (see
:mod:`app.services.financial_extraction`) and afterwards edited and
confirmed by staff. ``rebuild_all`` throws every schedule away and builds
it again from the documents.
"""


import logging
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import NotFoundError
from app.domain.document import ProcessedDocument
from app.domain.financial import (
    INSTALLMENT_PENDING,
    SOURCE_DOCUMENT,
    SOURCE_MANUAL,
    FinancialRecord,
)
from app.domain.mixins import _now
from app.repositories.document import DocumentRepository
from app.repositories.financial import FinancialRecordRepository, InstallmentRepository
from app.schemas.financial import FinancialRecordUpdate
from app.services.financial_extraction import FinancialExtraction, extract_financial_data
from app.services.money import ZERO, to_cents
from app.services.payment_schedule import calculate_due_dates, first_due_date

logger = logging.getLogger(__name__)

# Document types whose schedules are rebuilt
REBUILD_DOCUMENT_TYPES = ("apolice", "proposta")
CANCELLED_STATUS = "cancelado"


class PaymentService:
    def __init__(self, session: AsyncSession):
        self._session = session
        self._documents = DocumentRepository(session)
        self._records = FinancialRecordRepository(session)
        self._installments = InstallmentRepository(session)

    # ------------------------------------------------------------------
    # Read / create
    # ------------------------------------------------------------------

    async def _document(self, document_id: str) -> ProcessedDocument:
        document = await self._documents.get_by_id(document_id)
        if not document:
            raise NotFoundError("Document", document_id)
        return document

    async def preview(self, document_id: str) -> FinancialExtraction:
        """Run the extractor over a document without touching its schedule."""
        document = await self._document(document_id)
        return extract_financial_data(document.result)

    async def get_or_create(self, document_id: str, today: date | None = None) -> FinancialRecord:
        """Return the document's financial record, creating it from the OCR payload if needed."""
        document = await self._document(document_id)
        records = await self._records.list_for_document(document_id)
        if not records:
            return await self._create_from_document(document, today=today)

        record = await self._collapse_duplicates(records)
        await self._drop_duplicate_installments(record)
        return await self._fresh(record.id)

    async def _fresh(self, record_id: str) -> FinancialRecord:
        record = await self._records.get_fresh(record_id)
        if record is None:
            raise NotFoundError("Financial record", record_id)
        return record

    async def _create_from_document(
        self, document: ProcessedDocument, today: date | None = None
    ) -> FinancialRecord:
        extraction = extract_financial_data(document.result)
        record = await self._records.create(
            document_id=document.id,
            payment_method=extraction.payment_method,
            installment_count=extraction.installment_count,
            total_amount=extraction.total_amount,
            net_premium=extraction.net_premium,
            gross_premium=extraction.gross_premium,
            iof=extraction.iof,
            document_type=document.document_type,
            source=SOURCE_DOCUMENT,
            confirmed=False,
            last_updated_at=_now(),
        )

        first_due = first_due_date(
            document.result, today=today, offset_days=settings.first_due_offset_days
        )
        due_dates = calculate_due_dates(
            first_due,
            extraction.installment_count,
            settings.installment_interval_days,
            today=today,
        )
        await self._installments.create_many([
            {
                "financial_record_id": record.id,
                "number": number,
                "amount": amount,
                "due_date": due,
                "status": INSTALLMENT_PENDING,
            }
            for number, (amount, due) in enumerate(
                zip(extraction.installment_amounts, due_dates), start=1
            )
        ])
        logger.info(
            "Created financial record %s for document %s (%s, %d installment(s))",
            record.id, document.id, extraction.payment_method, extraction.installment_count,
        )
        return await self._fresh(record.id)

    async def _collapse_duplicates(self, records: list[FinancialRecord]) -> FinancialRecord:
        """Keep the most recently updated record of a document; delete the rest."""
        ordered = sorted(
            records,
            key=lambda r: r.last_updated_at or r.created_at,
            reverse=True,
        )
        keep, duplicates = ordered[0], ordered[1:]
        for duplicate in duplicates:
            logger.warning(
                "Removing duplicate financial record %s of document %s",
                duplicate.id, duplicate.document_id,
            )
            await self._records.delete_record(duplicate.id)
        return keep

    async def _drop_duplicate_installments(self, record: FinancialRecord) -> None:
        seen: set[int] = set()
        removed = 0
        for installment in sorted(record.installments, key=lambda i: i.number):
            if installment.number in seen:
                await self._installments.delete(installment.id)
                removed += 1
            else:
                seen.add(installment.number)
        if removed:
            logger.warning("Removed %d duplicate installment(s) of record %s", removed, record.id)
            await self._records.update(
                record.id, installment_count=len(seen), last_updated_at=_now()
            )

    # ------------------------------------------------------------------
    # Staff edits
    # ------------------------------------------------------------------

    async def save(self, document_id: str, data: FinancialRecordUpdate) -> FinancialRecord:
        """Apply staff edits and mark the schedule as confirmed.

        The record total becomes the sum of its installments.
        """
        record = await self.get_or_create(document_id)
        by_id = {i.id: i for i in record.installments}

        for change in data.installments:
            if change.id not in by_id:
                raise NotFoundError("Installment", change.id)
            fields = change.model_dump(exclude_unset=True, exclude={"id"})
            fields = {
                k: v for k, v in fields.items()
                if v is not None or k in ("due_date", "paid_date")
            }
            if "amount" in fields:
                fields["amount"] = to_cents(fields["amount"])
            if fields:
                await self._installments.update(change.id, **fields)

        record = await self._fresh(record.id)
        total = sum((i.amount for i in record.installments), ZERO)
        changes = {
            "installment_count": len(record.installments),
            "total_amount": total,
            "source": SOURCE_MANUAL,
            "confirmed": True,
            "last_updated_at": _now(),
        }
        if data.payment_method:
            changes["payment_method"] = data.payment_method.strip()
        await self._records.update(record.id, **changes)
        logger.info("Financial record %s confirmed (total=%s)", record.id, total)
        return await self._fresh(record.id)

    async def add_installment(self, document_id: str, today: date | None = None) -> FinancialRecord:
        """Append an installment 30 days after the last one, valued at the current mean."""
        record = await self.get_or_create(document_id, today=today)
        installments = list(record.installments)
        last = max(installments, key=lambda i: i.number) if installments else None

        interval = timedelta(days=settings.installment_interval_days)
        if last is not None and last.due_date is not None:
            due = last.due_date + interval
        else:
            due = (today or date.today()) + timedelta(days=settings.first_due_offset_days)

        if installments:
            amount = to_cents(sum((i.amount for i in installments), ZERO) / len(installments))
        else:
            amount = to_cents(Decimal(record.total_amount or 0))

        await self._installments.create(
            financial_record_id=record.id,
            number=(last.number + 1) if last else 1,
            amount=amount,
            due_date=due,
            status=INSTALLMENT_PENDING,
        )
        await self._records.update(
            record.id, installment_count=len(installments) + 1, last_updated_at=_now()
        )
        return await self._fresh(record.id)

    async def remove_installment(self, document_id: str, installment_id: str) -> FinancialRecord:
        record = await self.get_or_create(document_id)
        remaining = [i.id for i in record.installments if i.id != installment_id]
        if len(remaining) == len(record.installments):
            raise NotFoundError("Installment", installment_id)

        await self._installments.delete(installment_id)
        await self._records.update(
            record.id, installment_count=len(remaining), last_updated_at=_now()
        )
        return await self._fresh(record.id)

    # ------------------------------------------------------------------
    # Bulk rebuild
    # ------------------------------------------------------------------

    async def rebuild_all(self, today: date | None = None) -> dict[str, int]:
        """Recreate the financial data of every proposal and policy.

        Cancelled documents are left alone. Each document is rebuilt inside its
        own savepoint, so a failing one keeps its old data and is only counted.
        """
        documents = await self._documents.list_by_types(
            REBUILD_DOCUMENT_TYPES, exclude_status=CANCELLED_STATUS
        )
        succeeded = failed = 0
        for document in documents:
            document_id = document.id
            try:
                async with self._session.begin_nested():
                    await self._records.delete_for_document(document_id)
                    await self._create_from_document(document, today=today)
                succeeded += 1
            except Exception:
                failed += 1
                logger.exception("Could not rebuild financial data of document %s", document_id)

        logger.info(
            "Rebuilt financial data: %d document(s), %d ok, %d failed",
            len(documents), succeeded, failed,
        )
        return {"total": len(documents), "succeeded": succeeded, "failed": failed}
