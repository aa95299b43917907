"""Parsing and formatting of Brazilian-real amounts.

Amounts reach us in every shape the OCR pipeline can produce: JSON numbers,
``"R$ 1.234,56"``, ``"1234,56"``, ``"1.234"`` or plain ``"1234.56"``.
Everything is turned into a cents-quantized :class:`~decimal.Decimal`.
"""


import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

__all__ = ["CENTS", "ZERO", "parse_amount", "to_cents", "format_brl"]

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")

_NOISE_RE = re.compile(r"[R$\s]")
# "1234.5" / "1234.56": a dot used as decimal point (no comma anywhere)
_DOT_DECIMAL_RE = re.compile(r"^-?\d+\.\d{1,2}$")
_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")


def to_cents(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def parse_amount(value: Any) -> Decimal:
    """Return *value* as a Decimal with two places; ``0.00`` when it cannot be read.

    With a comma present the pt-BR convention applies (``.`` thousands,
    ``,`` decimals). Without one, a single dot followed by one or two digits
    is a decimal point and any other dot is a thousands separator.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, (Decimal, int, float)):
        number = Decimal(str(value))
        return to_cents(number) if number.is_finite() else ZERO

    text = _NOISE_RE.sub("", str(value))
    if not text:
        return ZERO

    if "," in text:
        text = text.replace(".", "").replace(",", ".", 1).replace(",", "")
    elif not _DOT_DECIMAL_RE.match(text):
        text = text.replace(".", "")

    match = _NUMBER_RE.search(text)
    if not match:
        return ZERO
    try:
        return to_cents(Decimal(match.group(0)))
    except InvalidOperation:
        return ZERO


def format_brl(amount: Decimal | float | int | None) -> str:
    """Render an amount the way staff read it: ``R$ 1.234,56``."""
    value = to_cents(Decimal(str(amount or 0)))
    sign = "-" if value < 0 else ""
    integer, _, fraction = f"{abs(value):.2f}".partition(".")
    groups = f"{int(integer):,}".replace(",", ".")
    return f"{sign}R$ {groups},{fraction}"
