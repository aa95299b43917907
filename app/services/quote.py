"""Quote service: read quote PDFs and keep their text in ``cotacoes``."""


import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.core.pagination import PaginationParams
from app.domain.mixins import _now
from app.domain.quote import Quote
from app.repositories.quote import QuoteRepository
from app.schemas.quote import QuoteCreate, QuoteExtraction, QuoteOut, QuoteUpdate
from app.services.parser import extract_raw_text
from app.services.text_extraction import extract_insured_name, extract_insurer, extract_premium

logger = logging.getLogger(__name__)

UNIDENTIFIED_INSURED = "Segurado não identificado"


def extract_quote(pdf_bytes: bytes, file_name: str | None = None) -> QuoteExtraction:
    """Pull the text out of a quote PDF and apply the label heuristics."""
    text = extract_raw_text(pdf_bytes)
    return QuoteExtraction(
        file_name=file_name,
        text=text,
        insured_name=extract_insured_name(text),
        insurer=extract_insurer(text),
        premium=extract_premium(text),
    )


def quote_out(quote: Quote) -> QuoteOut:
    return QuoteOut(
        id=quote.id,
        name=quote.name,
        file_name=quote.file_name,
        quoted_at=quote.quoted_at,
        text=quote.text,
        created_at=quote.created_at,
        insurer=extract_insurer(quote.text),
        premium=extract_premium(quote.text),
    )


class QuoteService:
    def __init__(self, session: AsyncSession):
        self._repo = QuoteRepository(session)

    async def list_quotes(self, pagination: PaginationParams):
        return await self._repo.list(
            offset=pagination.offset,
            limit=pagination.limit,
            order_by=pagination.sort,
            order=pagination.order,
        )

    async def get_quote(self, quote_id: str) -> Quote:
        quote = await self._repo.get_by_id(quote_id)
        if not quote:
            raise NotFoundError("Quote", quote_id)
        return quote

    async def create_quote(self, data: QuoteCreate) -> Quote:
        """Save a quote; the name falls back to the insured found in the text."""
        name = (data.name or "").strip() or extract_insured_name(data.text) or UNIDENTIFIED_INSURED
        quote = await self._repo.create(
            name=name,
            file_name=data.file_name,
            text=data.text,
            quoted_at=data.quoted_at or _now(),
        )
        logger.info("Quote %s saved for %s", quote.id, name)
        return quote

    async def update_quote(self, quote_id: str, data: QuoteUpdate) -> Quote:
        _ = await self.get_quote(quote_id)  # raises 404 if missing
        changes = data.model_dump(exclude_none=True, exclude_unset=True)
        if "name" in changes:
            changes["name"] = changes["name"].strip() or UNIDENTIFIED_INSURED
        updated = await self._repo.update(quote_id, **changes)
        return updated  # type: ignore[return-value]

    async def delete_quote(self, quote_id: str) -> None:
        deleted = await self._repo.delete(quote_id)
        if not deleted:
            raise NotFoundError("Quote", quote_id)
