"""Quotes router — read quote PDFs and manage saved quotes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.pagination import PaginationParams
from app.core.response import DataResponse, ListResponse, paginated
from app.db.base import get_db
from app.schemas.quote import QuoteCreate, QuoteExtraction, QuoteOut, QuoteUpdate
from app.services.parser import validate_pdf_upload
from app.services.quote import QuoteService, extract_quote, quote_out

router = APIRouter(prefix="/quotes", tags=["Quotes"])


@router.post("/extract", response_model=DataResponse[QuoteExtraction])
async def extract(file: UploadFile = File(...)):
    """Upload a quote PDF and get its text with the insured/insurer/premium it mentions."""
    contents = await file.read()
    validate_pdf_upload(file.filename, file.content_type, contents)
    return {"data": extract_quote(contents, file_name=file.filename)}


@router.get("", response_model=ListResponse[QuoteOut])
async def list_quotes(
    pagination: PaginationParams = Depends(),
    session: AsyncSession = Depends(get_db),
):
    items, total = await QuoteService(session).list_quotes(pagination)
    return paginated([quote_out(q) for q in items], total, pagination)


@router.post("", response_model=DataResponse[QuoteOut], status_code=status.HTTP_201_CREATED)
async def create_quote(body: QuoteCreate, session: AsyncSession = Depends(get_db)):
    quote = await QuoteService(session).create_quote(body)
    return {"data": quote_out(quote)}


@router.get("/{quote_id}", response_model=DataResponse[QuoteOut])
async def get_quote(quote_id: str, session: AsyncSession = Depends(get_db)):
    quote = await QuoteService(session).get_quote(quote_id)
    return {"data": quote_out(quote)}


@router.put("/{quote_id}", response_model=DataResponse[QuoteOut])
async def update_quote(
    quote_id: str,
    body: QuoteUpdate,
    session: AsyncSession = Depends(get_db),
):
    quote = await QuoteService(session).update_quote(quote_id, body)
    return {"data": quote_out(quote)}


@router.delete("/{quote_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_quote(quote_id: str, session: AsyncSession = Depends(get_db)):
    await QuoteService(session).delete_quote(quote_id)
