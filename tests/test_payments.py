from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from app.core.exceptions import NotFoundError
from app.domain.financial import FinancialRecord, Installment
from app.services import payment as payment_module
from app.services.financial_extraction import FinancialExtraction
from app.services.payment import PaymentService

API = "/api/v1/documents"


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------

async def test_schedule_is_built_from_the_document(client, add_document, policy_result):
    document = await add_document(policy_result(), document_type="apolice")

    resp = await client.get(f"{API}/{document.id}/payments")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["documentId"] == document.id
    assert data["paymentMethod"] == "Boleto / Carnê"
    assert data["installmentCount"] == 4
    assert data["totalAmount"] == 1200.0
    assert data["source"] == "documento"
    assert data["confirmed"] is False
    assert [i["number"] for i in data["installments"]] == [1, 2, 3, 4]
    assert [i["amount"] for i in data["installments"]] == [300.0] * 4
    # policy starts 01/03/2026, first due date 30 days later
    assert [i["dueDate"] for i in data["installments"]] == [
        "2026-03-31", "2026-04-30", "2026-05-30", "2026-06-29",
    ]
    assert all(i["status"] == "pendente" and i["dueStatus"] for i in data["installments"])

    again = await client.get(f"{API}/{document.id}/payments")
    assert again.json()["data"]["id"] == data["id"]


async def test_extraction_preview_saves_nothing(client, session, add_document, policy_result):
    document = await add_document(policy_result(), document_type="apolice")

    resp = await client.get(f"{API}/{document.id}/payments/extraction")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["source"] == "valores"
    assert data["installmentAmounts"] == [300.0] * 4
    assert await session.scalar(select(func.count()).select_from(FinancialRecord)) == 0


async def test_schedule_of_missing_document(client):
    resp = await client.get(f"{API}/nope/payments")
    assert resp.status_code == 404


async def test_save_confirms_the_schedule(client, add_document, policy_result):
    document = await add_document(policy_result(), document_type="apolice")
    record = (await client.get(f"{API}/{document.id}/payments")).json()["data"]
    first = record["installments"][0]

    resp = await client.put(
        f"{API}/{document.id}/payments",
        json={
            "paymentMethod": "Débito em Conta",
            "installments": [
                {"id": first["id"], "amount": 350, "status": "pago", "paidDate": "2026-03-30"},
            ],
        },
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["paymentMethod"] == "Débito em Conta"
    assert data["totalAmount"] == 1250.0
    assert data["source"] == "manual"
    assert data["confirmed"] is True
    saved = data["installments"][0]
    assert saved["amount"] == 350.0
    assert saved["status"] == "pago"
    assert saved["paidDate"] == "2026-03-30"
    assert saved["dueStatus"] is None


async def test_save_rejects_unknown_installment_and_bad_status(client, add_document, policy_result):
    document = await add_document(policy_result(), document_type="apolice")
    record = (await client.get(f"{API}/{document.id}/payments")).json()["data"]

    resp = await client.put(f"{API}/{document.id}/payments", json={"installments": [{"id": "x"}]})
    assert resp.status_code == 404

    resp = await client.put(
        f"{API}/{document.id}/payments",
        json={"installments": [{"id": record["installments"][0]["id"], "status": "cancelada"}]},
    )
    assert resp.status_code == 422


async def test_add_and_remove_installments(client, add_document, policy_result):
    document = await add_document(policy_result(), document_type="apolice")
    await client.get(f"{API}/{document.id}/payments")

    resp = await client.post(f"{API}/{document.id}/payments/installments")
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["installmentCount"] == 5
    added = data["installments"][-1]
    assert added["number"] == 5
    assert added["amount"] == 300.0
    assert added["dueDate"] == "2026-07-29"

    first_id = data["installments"][0]["id"]
    resp = await client.delete(f"{API}/{document.id}/payments/installments/{first_id}")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["installmentCount"] == 4
    assert first_id not in [i["id"] for i in data["installments"]]

    resp = await client.delete(f"{API}/{document.id}/payments/installments/{first_id}")
    assert resp.status_code == 404


async def test_rebuild_covers_policies_and_proposals(client, add_document, policy_result):
    await add_document(policy_result(), document_type="apolice")
    await add_document(policy_result(), document_type="proposta")
    await add_document(policy_result(), document_type="endosso")

    resp = await client.post("/api/v1/payments/rebuild")
    assert resp.status_code == 200
    assert resp.json()["data"] == {"total": 2, "succeeded": 2, "failed": 0}


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

async def test_duplicate_records_collapse_to_latest(session, add_document, policy_result):
    document = await add_document(policy_result(), document_type="apolice")
    now = datetime.now(timezone.utc)
    old = FinancialRecord(document_id=document.id, last_updated_at=now - timedelta(days=2))
    new = FinancialRecord(document_id=document.id, last_updated_at=now)
    session.add_all([old, new])
    await session.flush()
    session.add_all([
        Installment(financial_record_id=new.id, number=1, amount=Decimal("100.00")),
        Installment(financial_record_id=new.id, number=1, amount=Decimal("100.00")),
        Installment(financial_record_id=new.id, number=2, amount=Decimal("100.00")),
    ])
    await session.commit()

    record = await PaymentService(session).get_or_create(document.id)

    assert record.id == new.id
    assert [i.number for i in record.installments] == [1, 2]
    assert record.installment_count == 2
    remaining = await session.scalar(select(func.count()).select_from(FinancialRecord))
    assert remaining == 1


async def test_new_installment_without_schedule_uses_total(session, add_document):
    document = await add_document({}, document_type="apolice")
    service = PaymentService(session)
    record = await service.get_or_create(document.id, today=date(2026, 1, 1))
    for installment in list(record.installments):
        await service.remove_installment(document.id, installment.id)

    record = await service.add_installment(document.id, today=date(2026, 1, 1))

    assert [(i.number, i.due_date) for i in record.installments] == [(1, date(2026, 1, 31))]
    assert record.installments[0].amount == Decimal("0.00")


async def test_rebuild_counts_failures(session, add_document, policy_result, monkeypatch):
    good = await add_document(policy_result(), document_type="apolice")
    await add_document({"boom": True}, document_type="proposta")
    real_extract = payment_module.extract_financial_data

    def flaky_extract(raw):
        if isinstance(raw, dict) and raw.get("boom"):
            raise RuntimeError("broken payload")
        return real_extract(raw)

    monkeypatch.setattr(payment_module, "extract_financial_data", flaky_extract)

    result = await PaymentService(session).rebuild_all(today=date(2026, 1, 1))

    assert result == {"total": 2, "succeeded": 1, "failed": 1}
    records = (await session.scalars(select(FinancialRecord))).all()
    assert [r.document_id for r in records] == [good.id]


async def test_rebuild_skips_cancelled_documents(session, add_document, policy_result):
    active = await add_document(policy_result(), document_type="apolice", status="concluido")
    await add_document(policy_result(), document_type="apolice", status="cancelado")
    undated = await add_document(policy_result(), document_type="proposta", status=None)

    result = await PaymentService(session).rebuild_all(today=date(2026, 1, 1))

    assert result == {"total": 2, "succeeded": 2, "failed": 0}
    rebuilt = set(await session.scalars(select(FinancialRecord.document_id)))
    assert rebuilt == {active.id, undated.id}


async def test_rebuild_survives_a_database_error(session, add_document, policy_result, monkeypatch):
    first = await add_document(policy_result(), document_type="apolice")
    broken = await add_document({"boom": True}, document_type="proposta")
    last = await add_document(policy_result(), document_type="apolice")
    session.add(FinancialRecord(document_id=broken.id, total_amount=Decimal("77.00")))
    await session.commit()
    real_extract = payment_module.extract_financial_data

    def null_amount_extract(raw):
        if isinstance(raw, dict) and raw.get("boom"):
            # NOT NULL on valor fails at flush, after the old record was deleted
            return FinancialExtraction(installment_amounts=[None])
        return real_extract(raw)

    monkeypatch.setattr(payment_module, "extract_financial_data", null_amount_extract)

    result = await PaymentService(session).rebuild_all(today=date(2026, 1, 1))
    await session.commit()

    assert result == {"total": 3, "succeeded": 2, "failed": 1}
    rows = (await session.execute(
        select(FinancialRecord.document_id, FinancialRecord.total_amount)
    )).all()
    by_document = {document_id: total for document_id, total in rows}
    assert set(by_document) == {first.id, broken.id, last.id}
    assert by_document[broken.id] == Decimal("77.00")
    assert by_document[first.id] == Decimal("1200.00")


async def test_remove_unknown_installment(session, add_document, policy_result):
    document = await add_document(policy_result(), document_type="apolice")
    with pytest.raises(NotFoundError):
        await PaymentService(session).remove_installment(document.id, "missing")
