import pytest

from app.services.formatters import (
    HOUSE_BROKER_NAME,
    capitalize,
    capitalize_words,
    format_broker_name,
    format_insurer_name,
    format_proposal_fields,
    mask_cpf,
    normalize_insurer_key,
    short_insurer_name,
)


def test_capitalize_helpers():
    assert capitalize("jOÃO") == "João"
    assert capitalize(None) == ""
    assert capitalize_words("maria da silva") == "Maria Da Silva"
    assert capitalize_words("") == ""


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("ALLIANZ SEGUROS S.A.", "Allianz Seguros"),
        ("allianz", "Allianz Seguros"),
        ("HDI", "HDI Seguros"),
        ("hdi seguros s/a", "HDI Seguros"),
        ("itaú", "Itaú Tradicional"),
        ("BRADESCO AUTO/RE COMPANHIA DE SEGUROS", "Bradesco Seguros"),
        ("porto seguro", "Porto Seguro"),
        ("", ""),
    ],
)
def test_format_insurer_name(raw, expected):
    assert format_insurer_name(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Allianz Seguros S.A.", "allianz seguros"),
        ("YELLUM SEGUROS S/A", "yellum seguros"),
        ("Itaú Seguros de Auto", "itau"),
        ("Tokio Marine Seguradora S.A.", "tokio marine seguradora"),
        ("Porto Seguro Cia.", "porto seguro cia"),
        (None, ""),
    ],
)
def test_normalize_insurer_key(raw, expected):
    assert normalize_insurer_key(raw) == expected


def test_short_insurer_name():
    assert short_insurer_name("Tokio Marine Seguradora S.A.") == "Tokio"
    assert short_insurer_name("bradesco auto/re companhia de seguros") == "Bradesco"
    assert short_insurer_name("Porto Seguro") == "Porto Seguro"


@pytest.mark.parametrize(
    "raw",
    ["Biju Corretora de Seguros Ltda", "BIJU CORRETORA SEGUROS LTD", "biju corr segs ltda"],
)
def test_house_broker_spellings_collapse(raw):
    assert format_broker_name(raw) == HOUSE_BROKER_NAME


def test_other_brokers_are_upper_cased():
    assert format_broker_name("Outra Corretora") == "OUTRA CORRETORA"
    assert format_broker_name(None) == ""


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("12345678901", "123.***.***-01"),
        ("123.456.789-01", "123.***.***-01"),
        ("12345", "12345"),
        (None, ""),
    ],
)
def test_mask_cpf(raw, expected):
    assert mask_cpf(raw) == expected


def test_format_proposal_fields_upper_cases_descriptive_fields():
    original = {
        "proposta": {"numero": "ab-1", "cia_seguradora": "allianz"},
        "segurado": {"nome": "maria souza", "cpf": "123", "endereco": {"cidade": "recife"}},
        "veiculo": {"marca_modelo": "fiat argo", "placa": "abc1d23"},
    }
    formatted = format_proposal_fields(original)

    assert formatted["proposta"]["numero"] == "AB-1"
    assert formatted["proposta"]["cia_seguradora"] == "ALLIANZ"
    assert formatted["segurado"]["nome"] == "MARIA SOUZA"
    assert formatted["segurado"]["endereco"]["cidade"] == "RECIFE"
    assert formatted["segurado"]["endereco"]["bairro"] == ""
    assert formatted["veiculo"]["marca_modelo"] == "FIAT ARGO"
    # untouched fields and the caller's dict stay as they were
    assert formatted["veiculo"]["placa"] == "abc1d23"
    assert original["segurado"]["nome"] == "maria souza"


def test_format_proposal_fields_passes_empty_through():
    assert format_proposal_fields(None) is None
    assert format_proposal_fields({}) == {}
