"""Document service: listing, search, detail, edit and delete of OCR documents."""


import logging
import re

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.core.pagination import PaginationParams
from app.domain.document import ProcessedDocument
from app.repositories.document import SEARCH_PATHS, DocumentRepository
from app.schemas.document import DocumentDetail, DocumentSummary, DocumentUpdate
from app.schemas.proposal import NOT_INFORMED
from app.services.financial_extraction import requires_payment_tracking
from app.services.formatters import (
    format_broker_name,
    format_insurer_name,
    format_proposal_fields,
    mask_cpf,
)
from app.services.money import parse_amount
from app.services.proposal_normalizer import document_number, normalize_proposal

logger = logging.getLogger(__name__)

_LETTERS_RE = re.compile(r"^[A-Za-zÀ-ÿ ]+$")
_PLATE_RE = re.compile(r"^[A-Za-z]{3}[0-9][0-9A-Za-z][0-9]{2}$")
_DIGITS_RE = re.compile(r"^[0-9]+$")
MIN_NAME_TERM = 4
MIN_DIGITS_TERM = 3


def classify_search_term(term: str) -> list[str]:
    """Fields a search term is matched against, most specific first.

    Letters only (4+) → insured name; a car plate → plate; digits only (3+)
    → CPF, proposal number and policy number. Anything else → every field.
    """
    if _LETTERS_RE.match(term) and len(term) >= MIN_NAME_TERM:
        return ["name"]
    if _PLATE_RE.match(term):
        return ["plate"]
    if _DIGITS_RE.match(term) and len(term) >= MIN_DIGITS_TERM:
        return ["cpf", "number", "policy"]
    return list(SEARCH_PATHS)


def _informed(value: str) -> str:
    return "" if value == NOT_INFORMED else value


def summarize_document(document: ProcessedDocument) -> DocumentSummary:
    proposal = normalize_proposal(document)
    number, label = document_number(document.document_type, proposal)
    return DocumentSummary(
        id=document.id,
        status=document.status,
        document_type=document.document_type,
        file_name=document.file_name,
        created_at=document.created_at,
        number=number,
        number_label=label,
        insured_name=_informed(proposal.insured.name),
        cpf=mask_cpf(_informed(proposal.insured.cpf)),
        plate=_informed(proposal.vehicle.plate),
        insurer=format_insurer_name(_informed(proposal.proposal.insurer)),
        broker=format_broker_name(_informed(proposal.broker.name)),
        total_price=parse_amount(proposal.values.total_price),
    )


class DocumentService:
    def __init__(self, session: AsyncSession):
        self._repo = DocumentRepository(session)

    async def list_documents(
        self,
        pagination: PaginationParams,
        document_type: str | None = None,
        status: str | None = None,
    ) -> tuple[list[ProcessedDocument], int]:
        filters = {"document_type": document_type, "status": status}
        return await self._repo.list(
            offset=pagination.offset,
            limit=pagination.limit,
            order_by=pagination.sort,
            order=pagination.order,
            filters=filters,
        )

    async def search_documents(
        self, term: str, pagination: PaginationParams
    ) -> tuple[list[ProcessedDocument], int]:
        """Search insured name / CPF / plate / proposal and policy numbers.

        When the targeted fields find nothing, every field is searched.
        Results keep the first occurrence of each document.
        """
        term = term.strip()
        if not term:
            return await self.list_documents(pagination)

        fields = classify_search_term(term)
        found = await self._search(fields, term)
        if not found and len(fields) < len(SEARCH_PATHS):
            found = await self._search(list(SEARCH_PATHS), term)

        logger.debug("Search %r over %s → %d hit(s)", term, fields, len(found))
        return pagination.slice(found), len(found)

    async def _search(self, fields: list[str], term: str) -> list[ProcessedDocument]:
        seen: set[str] = set()
        unique: list[ProcessedDocument] = []
        for field in fields:
            for document in await self._repo.search_field(field, term):
                if document.id not in seen:
                    seen.add(document.id)
                    unique.append(document)
        return unique

    async def get_document(self, document_id: str) -> ProcessedDocument:
        document = await self._repo.get_by_id(document_id)
        if not document:
            raise NotFoundError("Document", document_id)
        return document

    async def get_detail(self, document_id: str) -> DocumentDetail:
        document = await self.get_document(document_id)
        return DocumentDetail(
            id=document.id,
            status=document.status,
            document_type=document.document_type,
            file_name=document.file_name,
            created_at=document.created_at,
            proposal=normalize_proposal(document),
            result=document.result if isinstance(document.result, dict) else None,
            payment_tracking=requires_payment_tracking(document.document_type, document.result),
        )

    async def update_document(self, document_id: str, data: DocumentUpdate) -> ProcessedDocument:
        _ = await self.get_document(document_id)  # raises 404 if missing
        changes = {"result": format_proposal_fields(data.result)}
        if data.status is not None:
            changes["status"] = data.status
        updated = await self._repo.update(document_id, **changes)
        logger.info("Document %s updated", document_id)
        return updated  # type: ignore[return-value]

    async def delete_document(self, document_id: str) -> None:
        deleted = await self._repo.delete_with_financials(document_id)
        if not deleted:
            raise NotFoundError("Document", document_id)
        logger.info("Document %s deleted with its financial data", document_id)
