"""
Shared normalization rules used by every statement extractor.

- amounts are parsed locale-tolerantly and leave the extractor as a
  non-negative magnitude plus a Direction,
- free text is whitespace-collapsed and truncated to a bounded length,
- dates are parsed from the handful of layouts banks actually emit.

None of these functions raise on bad input; they return None so the caller
can fall through to the next fallback variant.
"""
import decimal
import logging
import re
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from bank_ingest.models.statement import Direction, TransactionType

logger = logging.getLogger(__name__)

__all__ = [
    'parse_amount',
    'split_signed_amount',
    'truncate_text',
    'parse_date',
    'parse_yymmdd',
    'direction_from_indicator',
    'classify_iso_code',
    'classify_payment_code',
]

# Whitespace (including no-break spaces) and the Swiss apostrophe group thousands
_GROUPING_CHARS = re.compile(r"[\s']")
_AMOUNT_RE = re.compile(r"^\d+(\.\d*)?$")

DATE_FORMATS = [
    "%Y-%m-%d",
    "%d.%m.%Y",
    "%d.%m.%Y.",
    "%d/%m/%Y",
    "%Y%m%d",
    "%d-%m-%Y",
    "%Y/%m/%d",
]

# Date part of a date-time or a zoned xs:date, e.g. "2024-01-15+01:00" or "15.01.2024 00:00:00"
_DATE_PART_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2}|\d{2}[./]\d{2}[./]\d{4}\.?)(?:[T\s].*|Z|[+-]\d{2}:?\d{2})$"
)

# Ordered substring rules over ISO 20022 domain/proprietary codes; first hit wins
ISO_CODE_RULES: List[Tuple[Tuple[str, ...], TransactionType]] = [
    (("FEE", "CHRG", "COMM"), TransactionType.FEE),
    (("SALA", "BONU", "PENS"), TransactionType.SALARY),
    (("TAXS", "VATX", "WHLD"), TransactionType.TAX),
    (("CARD", "CCRD", "DCRD", "POSD", "POSC", "CWDL"), TransactionType.CARD),
    (("DMCT", "ESCT", "RCDT", "ICDT"), TransactionType.WIRE),
]


def parse_amount(value: Optional[str]) -> Optional[Decimal]:
    """
    Parse a signed amount written with either `,` or `.` as decimal separator.

    Examples: "1 234,56" -> 1234.56, "1.234,56" -> 1234.56, "1,234.56" -> 1234.56,
    "-500,00" -> -500.00, "500,00-" -> -500.00, "1500," -> 1500. Returns None
    if unparseable.
    """
    if value is None:
        return None
    text = _GROUPING_CHARS.sub("", str(value))
    if not text:
        return None

    negative = False
    if text[0] in "+-":
        negative = text[0] == "-"
        text = text[1:]
    elif text[-1] == "-":
        negative = True
        text = text[:-1]

    last_comma = text.rfind(",")
    last_dot = text.rfind(".")
    if last_comma != -1 and last_dot != -1:
        # Both present: the right-most one is the decimal separator
        if last_comma > last_dot:
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif last_comma != -1:
        text = text.replace(",", ".") if text.count(",") == 1 else text.replace(",", "")
    elif text.count(".") > 1:
        text = text.replace(".", "")

    if not _AMOUNT_RE.match(text):
        logger.debug(f"Unparseable amount: {value!r}")
        return None
    try:
        amount = Decimal(text)
    except decimal.InvalidOperation:
        logger.debug(f"Unparseable amount: {value!r}")
        return None
    return -amount if negative else amount


def split_signed_amount(amount: Decimal) -> Tuple[Decimal, Direction]:
    """Resolve a signed amount into (magnitude, direction); negative means DEBIT."""
    if amount < 0:
        return -amount, Direction.DEBIT
    return amount, Direction.CREDIT


def truncate_text(value: Optional[str], max_length: int) -> Optional[str]:
    """Collapse whitespace and truncate; empty text becomes None."""
    if value is None:
        return None
    collapsed = " ".join(str(value).split())
    if not collapsed:
        return None
    return collapsed[:max_length]


def parse_date(value: Optional[str]) -> Optional[date]:
    """
    Parse a calendar date; date-times and timezone offsets are cut to the date part.

    Returns None if no known layout matches.
    """
    if not value:
        return None
    text = value.strip()
    date_part = _DATE_PART_RE.match(text)
    if date_part:
        text = date_part.group(1)

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    logger.debug(f"Unparseable date: {value!r}")
    return None


def parse_yymmdd(value: Optional[str]) -> Optional[date]:
    """Parse a SWIFT six-digit YYMMDD date; years map to 20YY."""
    if not value or len(value) != 6 or not value.isdigit():
        return None
    try:
        return date(2000 + int(value[0:2]), int(value[2:4]), int(value[4:6]))
    except ValueError:
        logger.debug(f"Invalid YYMMDD date: {value!r}")
        return None


def direction_from_indicator(
    value: Optional[str],
    debit_tokens: Iterable[str],
    credit_tokens: Iterable[str]
) -> Optional[Direction]:
    """
    Map a coded side indicator to a Direction.

    The whole value is compared first; otherwise the first word that is a
    known token decides. Unknown indicators yield None so the caller can
    fall back to another source of direction.
    """
    if not value:
        return None
    debit = {token.lower() for token in debit_tokens}
    credit = {token.lower() for token in credit_tokens}
    text = value.strip().lower()
    if text in debit:
        return Direction.DEBIT
    if text in credit:
        return Direction.CREDIT
    for word in re.findall(r"[a-z0-9]+", text):
        if word in debit:
            return Direction.DEBIT
        if word in credit:
            return Direction.CREDIT
    return None


def classify_iso_code(code: Optional[str]) -> TransactionType:
    """Classify an ISO 20022 bank transaction code; unknown codes are wires."""
    if not code:
        return TransactionType.WIRE
    upper = code.upper()
    for needles, transaction_type in ISO_CODE_RULES:
        if any(needle in upper for needle in needles):
            return transaction_type
    return TransactionType.WIRE


def classify_payment_code(
    code: Optional[str],
    ranges: Iterable[Tuple[int, int, TransactionType]]
) -> TransactionType:
    """
    Classify a three-digit national payment code through a range table.

    The first digit only encodes the payment form (1 cash, 2 non-cash,
    3 compensation), so codes are compared on their 2xx equivalent.
    """
    if not code:
        return TransactionType.WIRE
    digits = "".join(ch for ch in code if ch in "0123456789")
    if len(digits) < 3:
        return TransactionType.WIRE
    value = int(digits[-3:])
    if 100 <= value < 400:
        value = 200 + value % 100
    for low, high, transaction_type in ranges:
        if low <= value <= high:
            return transaction_type
    return TransactionType.WIRE
