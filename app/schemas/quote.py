"""Quote (cotacoes) schemas."""


from datetime import datetime

from pydantic import Field

from app.schemas.common import CamelModel, Money


class QuoteExtraction(CamelModel):
    """Text and heuristics read from an uploaded quote PDF; nothing is stored."""

    file_name: str | None = None
    text: str
    insured_name: str | None = None
    insurer: str | None = None
    premium: Money | None = None


class QuoteCreate(CamelModel):
    name: str | None = Field(default=None, max_length=255)
    file_name: str | None = Field(default=None, max_length=255)
    text: str = ""
    quoted_at: datetime | None = None


class QuoteUpdate(CamelModel):
    name: str | None = Field(default=None, max_length=255)
    text: str | None = None


class QuoteOut(CamelModel):
    id: str
    name: str
    file_name: str | None = None
    quoted_at: datetime
    text: str
    created_at: datetime
    insurer: str | None = None
    premium: Money | None = None
