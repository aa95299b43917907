"""Shared fixtures: an in-memory database per test and an ASGI client bound to it."""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.db.base import create_local_schema, get_db
from app.domain.document import ProcessedDocument
from app.main import app
from app.middleware.audit import AuditMiddleware


@pytest.fixture()
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_local_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return async_sessionmaker(
        bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest.fixture()
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture()
def add_document(session_factory):
    """Insert an ``ocr_processamento`` row the way the OCR pipeline would."""

    async def _add(
        result=None,
        document_type="proposta",
        status="concluido",
        created_at=None,
        file_name="documento.pdf",
    ) -> ProcessedDocument:
        async with session_factory() as s:
            document = ProcessedDocument(
                document_type=document_type,
                status=status,
                file_name=file_name,
                result=result,
            )
            if created_at is not None:
                document.created_at = created_at
            s.add(document)
            await s.commit()
            return document

    return _add


@pytest.fixture()
def audit_calls(monkeypatch):
    """Replace the audit writer; each write request lands here as (method, path, status)."""
    calls: list[tuple[str, str, int]] = []

    async def _record(self, request, status_code, duration_ms):
        calls.append((request.method, request.url.path, status_code))

    monkeypatch.setattr(AuditMiddleware, "_record", _record)
    return calls


@pytest.fixture()
async def client(session_factory, audit_calls):
    async def _get_db():
        async with session_factory() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    app.dependency_overrides[get_db] = _get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Sample OCR payloads
# ---------------------------------------------------------------------------

def _policy_result(**overrides) -> dict:
    """A typical policy payload: R$ 1.200,00 by boleto in 4x, starting 01/03/2026."""
    result = {
        "segurado": {"nome": "Maria Souza", "cpf": "12345678901"},
        "veiculo": {"placa": "ABC1D23", "marca_modelo": "Fiat Argo Drive"},
        "proposta": {
            "numero": "12345",
            "apolice": "998877",
            "cia_seguradora": "Allianz Seguros S.A.",
            "vigencia_inicio": "01/03/2026",
            "forma_pagto": "Boleto",
        },
        "valores": {
            "preco_total": "R$ 1.200,00",
            "forma_pagamento": "Boleto bancário",
            "parcelamento": {"quantidade": "4x"},
        },
        "corretor": {"nome": "Biju Corretora de Seguros Ltda"},
    }
    result.update(overrides)
    return result


@pytest.fixture()
def policy_result():
    return _policy_result
