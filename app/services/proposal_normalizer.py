"""Turn raw ``ocr_processamento`` rows into the canonical proposal shape."""


import json
import logging
from typing import Any

from pydantic import ValidationError

from app.schemas.proposal import NOT_INFORMED, NormalizedProposal

logger = logging.getLogger(__name__)

__all__ = ["normalize_proposal", "row_to_dict", "document_number"]

_DOCUMENT_TYPES = {"proposta", "apolice", "endosso", "cancelado"}


def row_to_dict(document: Any) -> dict[str, Any]:
    """Flatten a ProcessedDocument ORM object into the pipeline's row shape."""
    if isinstance(document, dict):
        return document
    return {
        "id": document.id,
        "status": document.status,
        "tipo_documento": document.document_type,
        "resultado": document.result,
        "criado_em": document.created_at.isoformat() if document.created_at else None,
    }


def normalize_proposal(row: Any) -> NormalizedProposal:
    """Build a fully populated proposal from a row; detail fields come from ``resultado``.

    Rows that cannot be validated still produce a proposal carrying the
    row's id, status and creation timestamp, with every other field at its
    ``"Não informado"`` default.
    """
    data = row_to_dict(row)
    base = data.get("resultado")
    if isinstance(base, str):
        try:
            base = json.loads(base)
        except ValueError:
            logger.debug("Document %s has an undecodable resultado", data.get("id"))
    if not isinstance(base, dict):
        base = {}

    document_type = data.get("tipo_documento")
    created_at = data.get("criado_em") or data.get("created_at")

    try:
        return NormalizedProposal.model_validate({
            "id": data.get("id") or "",
            "status": data.get("status") or "",
            "tipo_documento": document_type if document_type in _DOCUMENT_TYPES else "proposta",
            "valores": base.get("valores"),
            "veiculo": base.get("veiculo"),
            "corretor": base.get("corretor"),
            "proposta": base.get("proposta"),
            "segurado": base.get("segurado"),
            "coberturas": base.get("coberturas") if isinstance(base.get("coberturas"), list) else [],
            "assistencias": base.get("assistencias"),
            "clausulas": base.get("clausulas") if isinstance(base.get("clausulas"), list) else [],
            "criado_em": created_at,
        })
    except ValidationError as exc:
        logger.warning("Could not normalize document %s: %s", data.get("id"), exc.error_count())
        return NormalizedProposal(
            id=str(data.get("id") or ""),
            status=str(data.get("status") or ""),
            created_at=created_at,
        )


def document_number(document_type: str | None, proposal: NormalizedProposal) -> tuple[str, str]:
    """Return ``(number, label)`` identifying a document for staff lists."""
    info = proposal.proposal

    def informed(*values: str | None) -> str:
        for value in values:
            if value and value != NOT_INFORMED:
                return value
        return "-"

    if document_type == "apolice":
        return informed(info.policy_number, info.number), "Apólice"
    if document_type == "proposta":
        return informed(info.number), "Proposta"
    if document_type == "endosso":
        return informed(info.endorsement, info.number), "Endosso"
    return informed(info.number), "Documento"
