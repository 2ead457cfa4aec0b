"""
SWIFT MT940 statement extractor.

The message is a sequence of `:NN[a]:` fields. Transactions are `:61:`
fields; the `:86:` field that directly follows a `:61:` carries its
free-text description.

CRLF, LF and bare CR line breaks are accepted. A field tag is recognized at
the start of a line or right after the `{4:` block opener; a `:NN:` sequence
in the middle of a line is treated as text, since `:86:` narratives may
contain one.
"""
import logging
import re
from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

from bank_ingest.models.statement import (
    Direction,
    ParsedStatement,
    ParsedTransaction,
    StatementFormat,
    TransactionType,
)
from bank_ingest.utils.normalization import parse_amount, parse_yymmdd
from bank_ingest.utils.statement_parsers.base import StatementExtractor

logger = logging.getLogger(__name__)

# A field tag starts a line or directly follows the opening of the text block
FIELD_RE = re.compile(r"(?:^|(?<=\{4:))[ \t]*:(\d{2}[A-Z]?):", re.MULTILINE)
BALANCE_RE = re.compile(r"([CD])(\d{6})([A-Z]{3})(\d[\d,]*)")
STATEMENT_LINE_RE = re.compile(r"(\d{6})(\d{4})?(RC|RD|C|D)([A-Z])?(\d[\d,]*)")
TYPE_CODE_RE = re.compile(r"^([NSF][A-Z0-9]{3})(.*)$")

# Block trailers that end up attached to the last field of a message
TRAILER_LINES = frozenset({"-", "-}", "}"})

# Direction of the 1-2 letter mark; reversals flip the side
DIRECTION_MARKS = {
    "C": Direction.CREDIT,
    "D": Direction.DEBIT,
    "RC": Direction.DEBIT,
    "RD": Direction.CREDIT,
}

# Three-letter SWIFT transaction type suffixes with a specific meaning
SWIFT_TYPE_CODES = {
    "CHG": TransactionType.FEE,
    "COM": TransactionType.FEE,
    "SAL": TransactionType.SALARY,
    "TAX": TransactionType.TAX,
}


def split_fields(text: str) -> List[Tuple[str, str]]:
    """Split a message into (tag, value) pairs in document order; values keep their line breaks."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    matches = list(FIELD_RE.finditer(text))
    fields: List[Tuple[str, str]] = []
    for position, match in enumerate(matches):
        end = matches[position + 1].start() if position + 1 < len(matches) else len(text)
        lines = [line.rstrip() for line in text[match.end():end].splitlines()]
        lines = [line for line in lines if line.strip() not in TRAILER_LINES]
        fields.append((match.group(1), "\n".join(lines).strip()))
    return fields


def parse_balance(value: str) -> Tuple[Optional[Decimal], Optional[date], Optional[str]]:
    """Signed amount, date and currency of a `:60F:`/`:62F:` balance; D means negative."""
    match = BALANCE_RE.search(value)
    if not match:
        return None, None, None
    sign, raw_date, currency, raw_amount = match.groups()
    amount = parse_amount(raw_amount)
    if amount is not None and sign == "D":
        amount = -amount
    return amount, parse_yymmdd(raw_date), currency


class Mt940Extractor(StatementExtractor):
    """Extracts SWIFT MT940 customer statements."""

    format = StatementFormat.SWIFT_TEXT

    def _extract(self, normalized: str) -> ParsedStatement:
        fields = split_fields(normalized)

        account: Optional[str] = None
        statement_number: Optional[str] = None
        opening = closing = None
        period_start = period_end = None
        currency: Optional[str] = None
        transactions: List[ParsedTransaction] = []
        # Index into `transactions` of a :61: that may still receive its :86:
        awaiting_description: Optional[int] = None

        for tag, value in fields:
            if tag == "61":
                transaction = self._statement_line(value, len(transactions) + 1)
                if transaction is not None:
                    transactions.append(transaction)
                    awaiting_description = len(transactions) - 1
                else:
                    awaiting_description = None
                continue

            if tag == "86":
                if awaiting_description is not None:
                    description = self._text(value.replace("\n", " "))
                    transactions[awaiting_description] = transactions[awaiting_description].model_copy(
                        update={'description': description}
                    )
                else:
                    logger.debug("Ignoring :86: field that does not follow a statement line")
                awaiting_description = None
                continue

            awaiting_description = None
            if tag == "25" and account is None:
                account = value.splitlines()[0].strip() if value else None
            elif tag == "28C" and statement_number is None:
                statement_number = value.strip() or None
            elif tag in ("60F", "60M") and opening is None:
                opening, period_start, currency = parse_balance(value)
            elif tag in ("62F", "62M"):
                # The last closing balance of a multi-part message is the final one
                closing, period_end, closing_currency = parse_balance(value)
                currency = currency or closing_currency

        return ParsedStatement(
            format=self.format,
            accountIdentifier=account,
            statementNumber=statement_number,
            currency=currency,
            openingBalance=opening,
            closingBalance=closing,
            periodStart=period_start,
            periodEnd=period_end,
            transactions=transactions,
        )

    def _statement_line(self, value: str, position: int) -> Optional[ParsedTransaction]:
        """
        Parse one `:61:` field.

        Layout: YYMMDD [MMDD] C|D|RC|RD [funds code] amount type-code reference[//bank ref]
        followed by an optional supplementary details line.
        """
        first_line, _, supplementary = value.partition("\n")
        match = STATEMENT_LINE_RE.match(first_line.strip())
        if not match:
            logger.warning(f"Skipping :61: field {position}: unrecognized layout {first_line[:40]!r}")
            return None

        raw_date, _entry_date, mark, _funds_code, raw_amount = match.groups()
        line_date = parse_yymmdd(raw_date)
        amount = parse_amount(raw_amount)
        if line_date is None or amount is None:
            logger.warning(f"Skipping :61: field {position}: invalid date or amount")
            return None

        type_code, reference = self._type_and_reference(first_line.strip()[match.end():])

        return ParsedTransaction(
            lineDate=line_date,
            valueDate=line_date,
            amount=amount,
            direction=DIRECTION_MARKS[mark],
            paymentReference=self._text(reference),
            paymentPurpose=self._text(supplementary),
            transactionType=SWIFT_TYPE_CODES.get(type_code[1:], TransactionType.WIRE) if type_code else TransactionType.WIRE,
        )

    def _type_and_reference(self, rest: str) -> Tuple[Optional[str], Optional[str]]:
        match = TYPE_CODE_RE.match(rest)
        if not match:
            return None, None
        type_code, reference = match.groups()
        reference = reference.split("//", 1)[0].strip()
        if not reference or reference.upper() == "NONREF":
            return type_code, None
        return type_code, reference
