"""Display formatting for names, insurers, brokers and personal documents."""


import re
import unicodedata
from copy import deepcopy
from typing import Any

__all__ = [
    "upper_or_empty",
    "capitalize",
    "capitalize_words",
    "format_proposal_fields",
    "format_insurer_name",
    "normalize_insurer_key",
    "short_insurer_name",
    "format_broker_name",
    "mask_cpf",
]

HOUSE_BROKER_NAME = "BIJU CORR SEGS LTDA"

_INSURER_ALIASES: dict[str, str] = {
    "allianz": "Allianz Seguros",
    "allianz seguros": "Allianz Seguros",
    "allianz sa": "Allianz Seguros",
    "allianz seguros sa": "Allianz Seguros",
    "itaú": "Itaú Tradicional",
    "itaú tradicional": "Itaú Tradicional",
    "hdi": "HDI Seguros",
    "hdi seguros": "HDI Seguros",
    "bradesco autore companhia de seguros": "Bradesco Seguros",
    "bradesco auto re companhia de seguros": "Bradesco Seguros",
    "bradesco companhia de seguros": "Bradesco Seguros",
    "bradesco seguros": "Bradesco Seguros",
    "bradesco": "Bradesco Seguros",
}

# Grouping keys for reports: substring → canonical key, first match wins
_INSURER_GROUPS: list[tuple[str, str]] = [
    ("allianz", "allianz seguros"),
    ("yellum", "yellum seguros"),
    ("tokio marine", "tokio marine seguradora"),
    ("hdi", "hdi seguros"),
    ("azul companhia", "azul companhia de seguros gerais"),
    ("bradesco", "bradesco auto/re companhia de seguros"),
    ("mapfre", "mapfre"),
    ("itau", "itau"),
]

_SHORT_INSURER_NAMES: dict[str, str] = {
    "yellum seguros": "Yelum",
    "yellum": "Yelum",
    "yelum": "Yelum",
    "yelum seguros sa": "Yelum",
    "bradesco auto/re companhia de seguros": "Bradesco",
    "bradesco": "Bradesco",
    "allianz seguros": "Allianz",
    "allianz": "Allianz",
    "tokio marine seguradora": "Tokio",
    "tokio marine": "Tokio",
    "azul companhia de seguros gerais": "Azul",
    "azul": "Azul",
    "hdi seguros": "HDI",
    "hdi": "HDI",
    "itau": "Itaú",
    "mapfre": "Mapfre",
}

_TRAILING_SA_RE = re.compile(r"\s*S\.?\s*A\.?\s*$", re.IGNORECASE)
_WORD_START_RE = re.compile(r"(?:^|(?<=\s)|\b)([a-zà-ú])")
_KEY_PUNCTUATION_RE = re.compile(r"[.,\-/#!$%^&*;:{}=_`~()]")
_HOUSE_BROKER_RES = (
    re.compile(r"biju\s+corretora?\s*(de)?\s*seguros?\s*ltda?", re.IGNORECASE),
    re.compile(r"biju\s+corr\s+segs\s+ltda", re.IGNORECASE),
)
_NON_DIGITS_RE = re.compile(r"\D")


def upper_or_empty(text: Any) -> str:
    return str(text).upper() if text else ""


def capitalize(text: Any) -> str:
    if not text:
        return ""
    text = str(text)
    return text[:1].upper() + text[1:].lower()


def capitalize_words(text: Any) -> str:
    if not text:
        return ""
    return _WORD_START_RE.sub(lambda m: m.group(1).upper(), str(text).lower())


def _strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")


def format_proposal_fields(result: dict[str, Any] | None) -> dict[str, Any] | None:
    """Upper-case the descriptive fields of an OCR result before it is saved back."""
    if not result:
        return result
    formatted = deepcopy(result)

    proposal = formatted.get("proposta")
    if isinstance(proposal, dict):
        for key in ("numero", "tipo_seguro", "cia_seguradora", "ramo", "apolice",
                    "codigo_ci", "classe_bonus"):
            proposal[key] = upper_or_empty(proposal.get(key))

    insured = formatted.get("segurado")
    if isinstance(insured, dict):
        for key in ("nome", "profissao"):
            insured[key] = upper_or_empty(insured.get(key))
        address = dict(insured.get("endereco") or {})
        for key in ("logradouro", "bairro", "cidade", "estado"):
            address[key] = upper_or_empty(address.get(key))
        insured["endereco"] = address

    vehicle = formatted.get("veiculo")
    if isinstance(vehicle, dict):
        for key in ("marca_modelo", "combustivel", "cambio", "categoria", "finalidade_uso"):
            vehicle[key] = upper_or_empty(vehicle.get(key))

    return formatted


def format_insurer_name(name: Any) -> str:
    """Canonical display name for an insurer (``"ALLIANZ S.A."`` → ``"Allianz Seguros"``)."""
    if not name:
        return ""
    text = _TRAILING_SA_RE.sub("", str(name))
    key = re.sub(r"[^a-zà-ú0-9 ]", "", text.lower()).strip()
    text = _INSURER_ALIASES.get(key, text)
    text = capitalize_words(text)
    text = text.replace("Hdi", "HDI")
    text = re.sub(r"Ita[uú]", "Itaú", text)
    return text.strip()


def normalize_insurer_key(name: Any) -> str:
    """Accent-free lower-case grouping key used to aggregate reports by insurer."""
    if not name:
        return ""
    text = _strip_accents(str(name))
    text = _KEY_PUNCTUATION_RE.sub("", text)
    text = re.sub(r"\s+", " ", text).strip().lower()
    for needle, key in _INSURER_GROUPS:
        if needle in text:
            return key
    return text


def short_insurer_name(name: Any) -> str:
    return _SHORT_INSURER_NAMES.get(normalize_insurer_key(name), str(name or ""))


def format_broker_name(name: Any) -> str:
    """All spellings of the house brokerage collapse into its registered name."""
    if not name:
        return ""
    text = str(name)
    if any(pattern.search(text) for pattern in _HOUSE_BROKER_RES):
        return HOUSE_BROKER_NAME
    return text.upper()


def mask_cpf(cpf: Any) -> str:
    """``12345678901`` → ``123.***.***-01``; anything that is not 11 digits is returned as is."""
    if not cpf:
        return ""
    digits = _NON_DIGITS_RE.sub("", str(cpf))
    if len(digits) != 11:
        return str(cpf)
    return f"{digits[:3]}.***.***-{digits[9:]}"
