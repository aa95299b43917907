import pytest

from app.middleware.audit import infer_entity

DOC_ID = "0b6c3c5e-7f0a-4b53-9c4d-0f3e8f1b2a11"


@pytest.mark.parametrize(
    "path, expected",
    [
        (f"/api/v1/quotes/{DOC_ID}", ("quote", DOC_ID)),
        (f"/api/v1/documents/{DOC_ID}", ("document", DOC_ID)),
        (f"/api/v1/documents/{DOC_ID}/payments", ("payments", None)),
        ("/api/v1/payments/rebuild", ("rebuild", None)),
        ("/", ("unknown", None)),
    ],
)
def test_infer_entity(path, expected):
    assert infer_entity(path) == expected


async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert "uploads_enabled" in body


async def test_reads_are_not_audited(client, audit_calls):
    await client.get("/api/v1/documents")
    await client.get("/health")
    assert audit_calls == []


async def test_unknown_route_uses_error_envelope(client):
    resp = await client.get("/api/v1/nowhere")
    assert resp.status_code == 404
    assert resp.json() == {"error": {"code": "NOT_FOUND", "message": "Resource not found"}}
