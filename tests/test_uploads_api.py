import httpx
import pytest

from app.main import app
from app.services.upload_queue import DONE, ProposalWebhookClient, UploadQueue

API = "/api/v1/uploads"
PDF_FILE = ("proposta.pdf", b"%PDF-1.4 fake", "application/pdf")


@pytest.fixture()
def queue(monkeypatch):
    webhook = ProposalWebhookClient(
        "http://ocr.test/webhook",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"id": "doc-1"})),
    )

    async def exists(document_id):
        return True

    queue = UploadQueue(webhook, exists=exists, poll_interval=0, max_attempts=1)
    monkeypatch.setattr(app.state, "upload_queue", queue)
    return queue


async def test_files_are_queued(client, queue):
    resp = await client.post(
        API,
        files=[("files", PDF_FILE), ("files", ("apolice.pdf", b"%PDF-1.7", "application/pdf"))],
        data={"tipo_documento": "apolice"},
    )
    assert resp.status_code == 202
    items = resp.json()["data"]
    assert [i["fileName"] for i in items] == ["proposta.pdf", "apolice.pdf"]
    assert {i["documentType"] for i in items} == {"apolice"}
    assert {i["status"] for i in items} == {"waiting"}


async def test_queue_listing_reports_completed_once(client, queue):
    await client.post(API, files=[("files", PDF_FILE)])
    await queue.process_next()

    body = (await client.get(API)).json()["data"]
    assert body["inFlight"] is False
    assert [i["status"] for i in body["items"]] == [DONE]
    assert [i["documentId"] for i in body["completed"]] == ["doc-1"]

    body = (await client.get(API)).json()["data"]
    assert body["completed"] == []


async def test_remove_and_clear(client, queue):
    items = (await client.post(API, files=[("files", PDF_FILE), ("files", PDF_FILE)])).json()["data"]

    assert (await client.delete(f"{API}/{items[0]['id']}")).status_code == 204
    assert (await client.delete(f"{API}/{items[0]['id']}")).status_code == 404
    assert len(queue.snapshot()) == 1

    assert (await client.delete(API)).status_code == 204
    assert queue.snapshot() == []


async def test_rejects_non_pdf_and_bad_type(client, queue):
    resp = await client.post(API, files=[("files", ("foto.png", b"\x89PNG", "image/png"))])
    assert resp.status_code == 415

    resp = await client.post(API, files=[("files", PDF_FILE)], data={"tipo_documento": "cancelado"})
    assert resp.status_code == 422
    assert queue.snapshot() == []


async def test_uploads_disabled_without_webhook(client, monkeypatch):
    monkeypatch.setattr(app.state, "upload_queue", UploadQueue(None))

    resp = await client.post(API, files=[("files", PDF_FILE)])
    assert resp.status_code == 503
    assert resp.json()["error"]["code"] == "SERVICE_UNAVAILABLE"
