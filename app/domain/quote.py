"""SQLAlchemy ORM model for saved quote texts."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.domain.mixins import CreatedAtMixin, UUIDPrimaryKeyMixin, _now


class Quote(Base, UUIDPrimaryKeyMixin, CreatedAtMixin):
    __tablename__ = "cotacoes"

    name: Mapped[str] = mapped_column("nome", String(255), nullable=False, index=True)
    file_name: Mapped[Optional[str]] = mapped_column("nome_arquivo", String(255), nullable=True)
    quoted_at: Mapped[datetime] = mapped_column(
        "data", DateTime(timezone=True), default=_now, nullable=False
    )
    text: Mapped[str] = mapped_column("texto", Text, nullable=False, default="")
