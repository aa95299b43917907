"""Documents router — list, search, detail, edit and delete OCR documents,
plus the payment schedule of each document."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.pagination import PaginationParams
from app.core.response import DataResponse, ListResponse, paginated
from app.db.base import get_db
from app.schemas.document import DocumentDetail, DocumentSummary, DocumentUpdate
from app.schemas.financial import (
    FinancialExtractionOut,
    FinancialRecordOut,
    FinancialRecordUpdate,
)
from app.services.document import DocumentService, summarize_document
from app.services.payment import PaymentService
from app.services.payment_schedule import installment_due_status

router = APIRouter(prefix="/documents", tags=["Documents"])


def _record_out(record) -> FinancialRecordOut:
    out = FinancialRecordOut.model_validate(record)
    for installment in out.installments:
        if installment.status == "pendente":
            installment.due_status = installment_due_status(installment.due_date)
    return out


# ------------------------------------------------------------------
# Documents
# ------------------------------------------------------------------

@router.get("", response_model=ListResponse[DocumentSummary])
async def list_documents(
    document_type: Optional[str] = Query(
        default=None, alias="type", description="proposta | apolice | endosso | cancelado"
    ),
    filter_status: Optional[str] = Query(default=None, alias="status"),
    pagination: PaginationParams = Depends(),
    session: AsyncSession = Depends(get_db),
):
    """List documents, newest first."""
    items, total = await DocumentService(session).list_documents(
        pagination, document_type=document_type, status=filter_status
    )
    return paginated(
        [summarize_document(d) for d in items], total, pagination
    )


@router.get("/search", response_model=ListResponse[DocumentSummary])
async def search_documents(
    q: str = Query(..., min_length=1, description="Insured name, CPF, plate, proposal or policy number"),
    pagination: PaginationParams = Depends(),
    session: AsyncSession = Depends(get_db),
):
    items, total = await DocumentService(session).search_documents(q, pagination)
    return paginated(
        [summarize_document(d) for d in items], total, pagination
    )


@router.get("/{document_id}", response_model=DataResponse[DocumentDetail])
async def get_document(document_id: str, session: AsyncSession = Depends(get_db)):
    detail = await DocumentService(session).get_detail(document_id)
    return {"data": detail}


@router.put("/{document_id}", response_model=DataResponse[DocumentSummary])
async def update_document(
    document_id: str,
    body: DocumentUpdate,
    session: AsyncSession = Depends(get_db),
):
    """Replace the document's extracted data (descriptive fields are upper-cased)."""
    document = await DocumentService(session).update_document(document_id, body)
    return {"data": summarize_document(document)}


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(document_id: str, session: AsyncSession = Depends(get_db)):
    """Delete a document with its financial record and installments."""
    await DocumentService(session).delete_document(document_id)


# ------------------------------------------------------------------
# Payment schedule of a document
# ------------------------------------------------------------------

@router.get("/{document_id}/payments", response_model=DataResponse[FinancialRecordOut])
async def get_payments(document_id: str, session: AsyncSession = Depends(get_db)):
    """Return the document's schedule, building it from the OCR data on first access."""
    record = await PaymentService(session).get_or_create(document_id)
    return {"data": _record_out(record)}


@router.get(
    "/{document_id}/payments/extraction",
    response_model=DataResponse[FinancialExtractionOut],
)
async def preview_extraction(document_id: str, session: AsyncSession = Depends(get_db)):
    """What the extractor reads from the document, without saving anything."""
    extraction = await PaymentService(session).preview(document_id)
    return {"data": FinancialExtractionOut.model_validate(extraction)}


@router.put("/{document_id}/payments", response_model=DataResponse[FinancialRecordOut])
async def save_payments(
    document_id: str,
    body: FinancialRecordUpdate,
    session: AsyncSession = Depends(get_db),
):
    """Save staff edits and mark the schedule as confirmed."""
    record = await PaymentService(session).save(document_id, body)
    return {"data": _record_out(record)}


@router.post(
    "/{document_id}/payments/installments",
    response_model=DataResponse[FinancialRecordOut],
    status_code=status.HTTP_201_CREATED,
)
async def add_installment(document_id: str, session: AsyncSession = Depends(get_db)):
    record = await PaymentService(session).add_installment(document_id)
    return {"data": _record_out(record)}


@router.delete(
    "/{document_id}/payments/installments/{installment_id}",
    response_model=DataResponse[FinancialRecordOut],
)
async def remove_installment(
    document_id: str,
    installment_id: str,
    session: AsyncSession = Depends(get_db),
):
    record = await PaymentService(session).remove_installment(document_id, installment_id)
    return {"data": _record_out(record)}
