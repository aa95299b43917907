import json
from datetime import datetime, timezone

import pytest

from app.domain.document import ProcessedDocument
from app.schemas.proposal import NOT_INFORMED
from app.services.proposal_normalizer import document_number, normalize_proposal, row_to_dict


def _row(**fields):
    row = {"id": "doc-1", "status": "concluido", "tipo_documento": "apolice", "criado_em": "2026-03-01"}
    row.update(fields)
    return row


def test_fields_come_from_result(policy_result):
    proposal = normalize_proposal(_row(resultado=policy_result()))

    assert proposal.id == "doc-1"
    assert proposal.document_type == "apolice"
    assert proposal.insured.name == "Maria Souza"
    assert proposal.vehicle.plate == "ABC1D23"
    assert proposal.proposal.policy_number == "998877"
    assert proposal.values.installments.quantity == "4x"


def test_missing_fields_are_filled_in():
    proposal = normalize_proposal(_row(resultado={"segurado": {"nome": "Ana", "cpf": None}}))

    assert proposal.insured.cpf == NOT_INFORMED
    assert proposal.insured.address.city == NOT_INFORMED
    assert proposal.vehicle.make_model == NOT_INFORMED
    assert proposal.vehicle.zero_km == "Não"
    assert proposal.values.installments.quantity == "1"
    assert proposal.coverages == []


def test_result_stored_as_json_string():
    raw = json.dumps({"valores": {"preco_total": 1500}})
    proposal = normalize_proposal(_row(resultado=raw))

    assert proposal.values.total_price == "1500"
    # installment value defaults to the total
    assert proposal.values.installments.installment_value == "1500"


def test_booleans_and_numbers_become_text():
    proposal = normalize_proposal(
        _row(resultado={"veiculo": {"zero_km": True, "blindado": False, "ano_modelo": 2024}})
    )

    assert proposal.vehicle.zero_km == "Sim"
    assert proposal.vehicle.armored == "Não"
    assert proposal.vehicle.model_year == "2024"


def test_unknown_document_type_reads_as_proposal():
    assert normalize_proposal(_row(tipo_documento="boleto")).document_type == "proposta"
    assert normalize_proposal(_row(tipo_documento=None)).document_type == "proposta"


@pytest.mark.parametrize("resultado", [None, "não é json", ["lista"], 42])
def test_unusable_result_still_normalizes(resultado):
    proposal = normalize_proposal(_row(resultado=resultado))

    assert proposal.id == "doc-1"
    assert proposal.status == "concluido"
    assert proposal.insured.name == NOT_INFORMED


def test_non_list_coverages_are_dropped():
    proposal = normalize_proposal(_row(resultado={"coberturas": "casco", "clausulas": {"a": 1}}))
    assert proposal.coverages == []
    assert proposal.clauses == []


def test_serializes_with_pipeline_keys(policy_result):
    dumped = normalize_proposal(_row(resultado=policy_result())).model_dump(by_alias=True)

    assert dumped["tipo_documento"] == "apolice"
    assert dumped["segurado"]["nome"] == "Maria Souza"
    assert dumped["valores"]["parcelamento"]["quantidade"] == "4x"
    assert dumped["criado_em"] == "2026-03-01"


def test_row_to_dict_reads_orm_objects():
    created = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
    document = ProcessedDocument(
        id="doc-9", status="concluido", document_type="proposta", result={"a": 1}, created_at=created
    )

    assert row_to_dict(document) == {
        "id": "doc-9",
        "status": "concluido",
        "tipo_documento": "proposta",
        "resultado": {"a": 1},
        "criado_em": created.isoformat(),
    }


def test_document_number_per_type(policy_result):
    proposal = normalize_proposal(_row(resultado=policy_result()))

    assert document_number("apolice", proposal) == ("998877", "Apólice")
    assert document_number("proposta", proposal) == ("12345", "Proposta")
    assert document_number("endosso", proposal) == ("12345", "Endosso")
    assert document_number("cancelado", proposal) == ("12345", "Documento")


def test_document_number_fallbacks():
    without_policy = normalize_proposal(_row(resultado={"proposta": {"numero": "555"}}))
    assert document_number("apolice", without_policy) == ("555", "Apólice")

    endorsement = normalize_proposal(_row(resultado={"proposta": {"numero": "555", "endosso": "E-1"}}))
    assert document_number("endosso", endorsement) == ("E-1", "Endosso")

    empty = normalize_proposal(_row(resultado={}))
    assert document_number("proposta", empty) == ("-", "Proposta")
