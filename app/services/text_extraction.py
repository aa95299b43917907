"""Label-driven heuristics over the plain text of a quote PDF."""


import re
from decimal import Decimal

from app.services.money import parse_amount

__all__ = ["KNOWN_INSURERS", "extract_insured_name", "extract_insurer", "extract_premium"]

# Scanned in order when no "Seguradora:" label is present
KNOWN_INSURERS: list[str] = [
    "Porto Seguro",
    "Bradesco",
    "SulAmérica",
    "Allianz",
    "Liberty",
    "HDI",
    "Tokio Marine",
    "Azul",
    "Mapfre",
    "Sompo",
    "Zurich",
    "Itaú",
]

_INSURED_PATTERNS = (
    re.compile(r"👤\s*Segurado:\s*([^\n]+)", re.IGNORECASE),
    re.compile(r"(?:Nome do Segurado|Segurado):\s*([^\n]+)", re.IGNORECASE),
    # "Segurado JOÃO DA SILVA Souza"
    re.compile(r"Segurado[:\s]+([A-ZÀ-Ú\s]+(?:[A-ZÀ-Ú][a-zà-ú]+\s*)+)"),
)
_INSURER_LABEL_RE = re.compile(r"(?:Seguradora|Cia):\s*([^\n]+)", re.IGNORECASE)
_PREMIUM_RE = re.compile(
    r"(?:Prêmio|Valor|Total)[^\d]*R?\$?\s*(\d{1,3}(?:\.\d{3})*(?:,\d{2})?)",
    re.IGNORECASE,
)


def extract_insured_name(text: str | None) -> str | None:
    if not text:
        return None
    for pattern in _INSURED_PATTERNS:
        match = pattern.search(text)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return None


def extract_insurer(text: str | None) -> str | None:
    """Labelled insurer first, then the first known insurer mentioned anywhere."""
    if not text:
        return None
    match = _INSURER_LABEL_RE.search(text)
    if match and match.group(1).strip():
        return match.group(1).strip()
    for insurer in KNOWN_INSURERS:
        if insurer in text:
            return insurer
    return None


def extract_premium(text: str | None) -> Decimal | None:
    """First amount following a Prêmio / Valor / Total label."""
    if not text:
        return None
    match = _PREMIUM_RE.search(text)
    if not match:
        return None
    return parse_amount(match.group(1))
