"""
Extractor for the national proprietary XML statement family.

Banks export the same logical fields under different tag names, so every
lookup goes through the ordered variant tables of NationalDialectConfig:
variant 1, then variant 2, and so on, leaving the field absent when none
matches. Direction is resolved through its own cascade:

1. an explicit side indicator (Smer, Tip, ...) mapped through the token lists,
2. separate debit/credit amount tags (Duguje/Potrazuje, ...),
3. the arithmetic sign of the single amount field.

A line where none of these yields an amount and direction is skipped.
"""
import logging
from decimal import Decimal
from typing import List, Optional, Tuple

from bank_ingest.models.statement import (
    Direction,
    ParsedStatement,
    ParsedTransaction,
    StatementFormat,
)
from bank_ingest.utils.config import NationalDialectConfig
from bank_ingest.utils.normalization import (
    classify_payment_code,
    direction_from_indicator,
    parse_amount,
    parse_date,
    split_signed_amount,
)
from bank_ingest.utils.statement_parsers.base import StatementExtractor
from bank_ingest.utils.tag_extractor import (
    all_tag_contents,
    child_elements,
    first_tag_content,
    tag_content,
)

logger = logging.getLogger(__name__)

# How a line's direction was decided
SOURCE_INDICATOR = "indicator"
SOURCE_COLUMNS = "columns"
SOURCE_SIGN = "sign"


class NationalXmlExtractor(StatementExtractor):
    """Extracts national-format statements across vendor dialects."""

    format = StatementFormat.NATIONAL_XML

    @property
    def dialect(self) -> NationalDialectConfig:
        return self.config.national_dialect

    def _extract(self, normalized: str) -> ParsedStatement:
        items = self._find_items(normalized)

        # Header fields are looked up outside the items so an item's Racun is
        # never mistaken for the statement account.
        header = normalized
        for item in items:
            if item:
                header = header.replace(item, "", 1)

        transactions: List[ParsedTransaction] = []
        sources = {SOURCE_INDICATOR: 0, SOURCE_COLUMNS: 0, SOURCE_SIGN: 0}
        for index, item in enumerate(items, start=1):
            result = self._item(item, index)
            if result is None:
                continue
            transaction, source = result
            transactions.append(transaction)
            sources[source] += 1

        if sources[SOURCE_SIGN] and (sources[SOURCE_INDICATOR] or sources[SOURCE_COLUMNS]):
            logger.warning(
                f"National statement mixes direction conventions: {sources[SOURCE_SIGN]} lines inferred "
                f"from amount sign, {sources[SOURCE_INDICATOR] + sources[SOURCE_COLUMNS]} from explicit tags"
            )

        return ParsedStatement(
            format=self.format,
            accountIdentifier=first_tag_content(header, self.dialect.account),
            statementNumber=first_tag_content(header, self.dialect.statement_number),
            currency=first_tag_content(header, self.dialect.currency),
            openingBalance=parse_amount(first_tag_content(header, self.dialect.opening_balance)),
            closingBalance=parse_amount(first_tag_content(header, self.dialect.closing_balance)),
            periodStart=parse_date(first_tag_content(header, self.dialect.period_start)),
            periodEnd=parse_date(first_tag_content(header, self.dialect.period_end)),
            transactions=transactions,
        )

    def _find_items(self, normalized: str) -> List[str]:
        """
        Transaction item bodies in document order.

        Known container tags are tried first; failing that, the direct
        children of the first known wrapper tag are taken as items.
        """
        for tag in self.dialect.container_tags:
            items = all_tag_contents(normalized, tag)
            if items:
                logger.debug(f"Found {len(items)} national items under <{tag}>")
                return items

        for tag in self.dialect.wrapper_tags:
            wrapper = tag_content(normalized, tag)
            if not wrapper:
                continue
            items = [content for _, content in child_elements(wrapper) if content]
            if items:
                logger.info(f"Found {len(items)} national items inside wrapper <{tag}>")
                return items

        logger.warning("No national transaction container or wrapper tag found")
        return []

    def _item(self, item: str, index: int) -> Optional[Tuple[ParsedTransaction, str]]:
        dialect = self.dialect
        line_date = parse_date(first_tag_content(item, dialect.line_date))
        if line_date is None:
            logger.warning(f"Skipping national item {index}: no parseable date")
            return None

        resolved = self._amount_and_direction(item)
        if resolved is None:
            logger.warning(f"Skipping national item {index}: no amount or direction could be resolved")
            return None
        amount, direction, source = resolved

        payment_code = first_tag_content(item, dialect.payment_code)
        transaction = ParsedTransaction(
            lineDate=line_date,
            valueDate=parse_date(first_tag_content(item, dialect.value_date)),
            amount=amount,
            direction=direction,
            description=self._text(first_tag_content(item, dialect.description)),
            counterpartyName=self._text(first_tag_content(item, dialect.counterparty_name)),
            counterpartyAccount=self._text(first_tag_content(item, dialect.counterparty_account)),
            counterpartyBank=self._text(first_tag_content(item, dialect.counterparty_bank)),
            paymentReference=self._text(first_tag_content(item, dialect.payment_reference)),
            paymentPurpose=self._text(payment_code),
            transactionType=classify_payment_code(payment_code, dialect.payment_code_ranges),
        )
        return transaction, source

    def _amount_and_direction(self, item: str) -> Optional[Tuple[Decimal, Direction, str]]:
        dialect = self.dialect
        amount = parse_amount(first_tag_content(item, dialect.amount))

        indicated = direction_from_indicator(
            first_tag_content(item, dialect.side_indicator),
            dialect.debit_tokens,
            dialect.credit_tokens,
        )
        if indicated is not None and amount is not None:
            return abs(amount), indicated, SOURCE_INDICATOR

        debit = parse_amount(first_tag_content(item, dialect.debit_amount))
        credit = parse_amount(first_tag_content(item, dialect.credit_amount))
        has_debit = debit is not None and debit != 0
        has_credit = credit is not None and credit != 0
        if has_debit and not has_credit:
            return abs(debit), Direction.DEBIT, SOURCE_COLUMNS
        if has_credit and not has_debit:
            return abs(credit), Direction.CREDIT, SOURCE_COLUMNS
        if has_debit and has_credit:
            magnitude, direction = split_signed_amount(credit - debit)
            return magnitude, direction, SOURCE_COLUMNS

        if amount is not None:
            magnitude, direction = split_signed_amount(amount)
            return magnitude, direction, SOURCE_SIGN

        return None
