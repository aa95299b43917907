"""Financial-data recovery from OCR results of uncertain shape.

The OCR/automation pipeline stores its output as loosely structured JSON:
sometimes the amounts live under ``valores``, sometimes under
``resultado.valores``, sometimes only the ``proposta`` block has them (with
different key names), numbers come as JSON numbers or as ``"R$ 1.234,56"``
strings, and whole sub-objects may be JSON-encoded strings.

:func:`extract_financial_data` recovers the canonical payment shape from any
of those. The source lookup order is fixed, so the same blob always yields
the same result, and malformed input never raises.
"""


import json
import logging
import math
import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from app.services.money import ZERO, parse_amount
from app.services.payment_schedule import calculate_installment_values

logger = logging.getLogger(__name__)

__all__ = [
    "FinancialExtraction",
    "extract_financial_data",
    "normalize_payment_method",
    "parse_installment_count",
    "requires_payment_tracking",
]

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

BOLETO = "Boleto / Carnê"
DEBIT = "Débito em Conta"
CREDIT_CARD = "Cartão de Crédito"
NOT_INFORMED = "Não informado"

# First matching rule wins; unmatched text falls back to boleto.
PAYMENT_METHOD_RULES: list[tuple[str, tuple[str, ...]]] = [
    (BOLETO, (
        "boleto", "carne", "carnê", "ficha", "compensacao", "compensação",
        "bradesco", "santander", "itau", "itaú", "brasil",
    )),
    (DEBIT, ("debito", "débito", "conta", "automatico", "automático")),
    (CREDIT_CARD, ("cartao", "cartão", "credito", "crédito")),
]

# "R$ 512,30 a R$ 498,10": first installment(s) value, then the last one
_RANGE_SEPARATOR_RE = re.compile(r"\s+a\s+(?=R\$)", re.IGNORECASE)
_INTEGER_RE = re.compile(r"\d+")
# Anything above this is an OCR misread, not a payment plan
MAX_INSTALLMENT_COUNT = 120

# ---------------------------------------------------------------------------
# Result type
# ---------------------------------------------------------------------------

@dataclass
class FinancialExtraction:
    payment_method: str = NOT_INFORMED
    installment_count: int = 1
    total_amount: Decimal = ZERO
    net_premium: Decimal = ZERO
    gross_premium: Decimal = ZERO
    iof: Decimal = ZERO
    installment_amounts: list[Decimal] = field(default_factory=lambda: [ZERO])
    source: str | None = None  # which path supplied the primary values

# ---------------------------------------------------------------------------
# Field normalizers
# ---------------------------------------------------------------------------

def normalize_payment_method(text: Any) -> str:
    """Map free-text payment descriptions onto the three canonical methods."""
    if not text:
        return BOLETO
    lowered = str(text).lower()
    for method, keywords in PAYMENT_METHOD_RULES:
        if any(kw in lowered for kw in keywords):
            return method
    return BOLETO


def parse_installment_count(value: Any) -> int:
    """Read an installment count from ``4``, ``"10x"``, ``"3 parcelas"``...

    Unreadable, non-positive or absurdly large counts give 1.
    """
    if isinstance(value, bool) or value is None:
        return 1
    if isinstance(value, float):
        if not math.isfinite(value):
            return 1
        value = int(value)
    if isinstance(value, int):
        count = value
    else:
        match = _INTEGER_RE.search(str(value))
        if not match:
            return 1
        count = int(match.group(0))
    return count if 1 <= count <= MAX_INSTALLMENT_COUNT else 1


def requires_payment_tracking(document_type: str | None, raw: Any) -> bool:
    """Only policies not paid by credit card get a tracked payment schedule."""
    if document_type != "apolice":
        return False
    proposal = _as_dict(_as_dict(raw).get("proposta"))
    return normalize_payment_method(proposal.get("forma_pagto")) != CREDIT_CARD

# ---------------------------------------------------------------------------
# Source resolution
# ---------------------------------------------------------------------------

def _as_dict(value: Any) -> dict:
    """Return *value* as a dict, decoding JSON strings; anything else is ``{}``."""
    if isinstance(value, dict):
        return value
    if isinstance(value, str) and value.strip().startswith("{"):
        try:
            decoded = json.loads(value)
        except ValueError:
            logger.debug("Ignoring undecodable JSON fragment")
            return {}
        return decoded if isinstance(decoded, dict) else {}
    return {}


def _from_proposal(proposal: dict) -> dict:
    """Convert a ``proposta`` block into the ``valores`` shape."""
    converted: dict[str, Any] = {
        "forma_pagamento": proposal.get("forma_pagto") or proposal.get("forma_pagamento"),
        "preco_total": proposal.get("premio_total"),
        "preco_liquido": proposal.get("premio_liquido"),
        "iof": proposal.get("iof"),
    }
    if proposal.get("quantidade_parcelas"):
        converted["parcelamento"] = {"quantidade": proposal.get("quantidade_parcelas")}
    return converted


def _candidate_sources(raw: dict) -> list[tuple[str, dict]]:
    result = _as_dict(raw.get("resultado"))
    return [
        ("resultado.valores", _as_dict(result.get("valores"))),
        ("valores", _as_dict(raw.get("valores"))),
        ("resultado.proposta", _as_dict(result.get("proposta"))),
        ("proposta", _as_dict(raw.get("proposta"))),
        ("valores_apolice", _as_dict(raw.get("valores_apolice"))),
    ]


def _ordered_sources(raw: dict) -> tuple[str | None, list[dict]]:
    """Pick the primary source and return it first, followed by all the others."""
    candidates = _candidate_sources(raw)
    primary_index: int | None = None

    for i, (_, src) in enumerate(candidates[:2]):
        if src.get("preco_total") or src.get("parcelamento"):
            primary_index = i
            break
    else:
        for i, (_, src) in enumerate(candidates[2:4], start=2):
            if src:
                primary_index = i
                break

    ordered: list[dict] = []
    if primary_index is not None:
        src = candidates[primary_index][1]
        if primary_index >= 2:
            src = {**_from_proposal(src), **src}
        ordered.append(src)
    for i, (_, src) in enumerate(candidates):
        if i != primary_index and src:
            ordered.append(src)

    primary_name = candidates[primary_index][0] if primary_index is not None else None
    return primary_name, ordered


def _first(sources: list[dict], *keys: str) -> Any:
    """First informed value of any of *keys*, scanning sources in order."""
    for src in sources:
        for key in keys:
            value = src.get(key)
            if value and value != NOT_INFORMED:
                return value
    return None


def _first_in_installments(sources: list[dict], key: str) -> Any:
    for src in sources:
        value = _as_dict(src.get("parcelamento")).get(key)
        if value and value != NOT_INFORMED:
            return value
    return None

# ---------------------------------------------------------------------------
# Installment values
# ---------------------------------------------------------------------------

def _installment_amounts(raw_value: Any, count: int, total: Decimal) -> list[Decimal]:
    if raw_value is None:
        if total > 0:
            return calculate_installment_values(total, count)
        return [ZERO] * count

    if isinstance(raw_value, str):
        parts = _RANGE_SEPARATOR_RE.split(raw_value.strip(), maxsplit=1)
        if len(parts) == 2:
            first, last = parse_amount(parts[0]), parse_amount(parts[1])
            return [first] * (count - 1) + [last]

    return [parse_amount(raw_value)] * count

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_financial_data(raw: Any) -> FinancialExtraction:
    """Recover payment method, installments, premiums and IOF from an OCR blob.

    Lookup order: the primary source (``resultado.valores`` or ``valores``
    when it carries a total or an installment plan, else the first non-empty
    ``resultado.proposta`` / ``proposta``), then every other candidate in the
    order ``resultado.valores``, ``valores``, ``resultado.proposta``,
    ``proposta``, ``valores_apolice``. Each field takes the first truthy hit.
    """
    data = _as_dict(raw)
    source_name, sources = _ordered_sources(data)
    if not sources:
        logger.info("No financial data found in document payload")
        return FinancialExtraction()

    method_text = _first(sources, "forma_pagamento", "forma_pagto")
    payment_method = normalize_payment_method(method_text) if method_text else NOT_INFORMED

    count_value = _first_in_installments(sources, "quantidade") or _first(
        sources, "quantidade_parcelas"
    )
    installment_count = parse_installment_count(count_value)

    total = parse_amount(_first(sources, "preco_total", "premio_total"))
    net = parse_amount(_first(sources, "preco_liquido", "premio_liquido"))
    iof = parse_amount(_first(sources, "iof"))
    gross = total if total > 0 else net + iof

    amounts = _installment_amounts(
        _first_in_installments(sources, "valor_parcela"), installment_count, total,
    )

    extraction = FinancialExtraction(
        payment_method=payment_method,
        installment_count=installment_count,
        total_amount=total,
        net_premium=net,
        gross_premium=gross,
        iof=iof,
        installment_amounts=amounts,
        source=source_name,
    )
    logger.debug(
        "Financial data from %s: %s x%d total=%s",
        source_name or "fallback sources", payment_method, installment_count, total,
    )
    return extraction
