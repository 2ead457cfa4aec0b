"""
ISO 20022 camt.053 statement extractor.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

from bank_ingest.models.statement import (
    Direction,
    ParsedStatement,
    ParsedTransaction,
    StatementFormat,
)
from bank_ingest.utils.normalization import (
    classify_iso_code,
    parse_amount,
    parse_date,
    split_signed_amount,
)
from bank_ingest.utils.statement_parsers.base import StatementExtractor
from bank_ingest.utils.tag_extractor import (
    all_tag_contents,
    attribute,
    first_tag_content,
    tag_content,
)

logger = logging.getLogger(__name__)

OPENING_BALANCE_CODES = ("OPBD", "PRCD")
CLOSING_BALANCE_CODES = ("CLBD",)

# Placeholder references that carry no information
EMPTY_REFERENCES = frozenset({"NOTPROVIDED", "NONREF"})


def _direction_from_code(code: Optional[str]) -> Optional[Direction]:
    if not code:
        return None
    code = code.strip().upper()
    if code == "DBIT":
        return Direction.DEBIT
    if code == "CRDT":
        return Direction.CREDIT
    return None


def _date_of(block: Optional[str]) -> Optional[date]:
    """Date of a `<Dt>` or `<DtTm>` child, whichever is present."""
    if not block:
        return None
    return parse_date(first_tag_content(block, ("Dt", "DtTm")))


def _account_id(block: Optional[str]) -> Optional[str]:
    """IBAN of an account block, else its proprietary `<Othr><Id>`."""
    if not block:
        return None
    iban = tag_content(block, "IBAN")
    if iban:
        return iban
    return tag_content(tag_content(block, "Othr"), "Id")


class Camt053Extractor(StatementExtractor):
    """
    Extracts bank-to-customer statements (camt.053).

    Entries are read from every `<Stmt>` of a message in document order.
    The header, balances and period come from the first statement.
    """

    format = StatementFormat.ISO20022_XML

    def _extract(self, normalized: str) -> ParsedStatement:
        statements = all_tag_contents(normalized, "Stmt") or [normalized]
        stmt = statements[0]
        account_identifier = _account_id(tag_content(stmt, "Acct"))

        opening, closing, currency = self._balances(stmt)
        period_start, period_end = self._period(stmt)

        transactions: List[ParsedTransaction] = []
        index = 0
        for position, block in enumerate(statements, start=1):
            if position > 1:
                other_account = _account_id(tag_content(block, "Acct"))
                if other_account and other_account != account_identifier:
                    logger.warning(
                        f"camt statement {position} declares account {other_account}, "
                        f"expected {account_identifier}; its entries are kept"
                    )
            for entry in all_tag_contents(block, "Ntry"):
                index += 1
                transaction = self._entry(entry, index)
                if transaction is not None:
                    transactions.append(transaction)

        if len(statements) > 1:
            logger.info(f"Read {index} camt entries from {len(statements)} statements")

        if currency is None:
            currency = attribute(tag_content(stmt, "Ntry"), "Ccy") or tag_content(tag_content(stmt, "Acct"), "Ccy")

        return ParsedStatement(
            format=self.format,
            accountIdentifier=account_identifier,
            statementNumber=first_tag_content(stmt, ("ElctrncSeqNb", "LglSeqNb")),
            currency=currency,
            openingBalance=opening,
            closingBalance=closing,
            periodStart=period_start,
            periodEnd=period_end,
            transactions=transactions,
        )

    def _balances(self, stmt: str) -> Tuple[Optional[Decimal], Optional[Decimal], Optional[str]]:
        """Opening and closing balance (signed) plus the first balance currency."""
        opening: Optional[Decimal] = None
        closing: Optional[Decimal] = None
        currency: Optional[str] = None

        for balance in all_tag_contents(stmt, "Bal"):
            code = tag_content(tag_content(balance, "Tp") or balance, "Cd")
            amount = parse_amount(tag_content(balance, "Amt"))
            if amount is None or not code:
                continue
            if _direction_from_code(tag_content(balance, "CdtDbtInd")) == Direction.DEBIT:
                amount = -abs(amount)
            if currency is None:
                currency = attribute(balance, "Ccy")

            code = code.upper()
            # OPBD is preferred over PRCD when a file carries both
            if code in OPENING_BALANCE_CODES and (opening is None or code == "OPBD"):
                opening = amount
            elif code in CLOSING_BALANCE_CODES:
                closing = amount

        return opening, closing, currency

    def _period(self, stmt: str) -> Tuple[Optional[date], Optional[date]]:
        period = tag_content(stmt, "FrToDt")
        if not period:
            return None, None
        start = parse_date(first_tag_content(period, ("FrDtTm", "FrDt")))
        end = parse_date(first_tag_content(period, ("ToDtTm", "ToDt")))
        return start, end

    def _entry(self, entry: str, index: int) -> Optional[ParsedTransaction]:
        raw_amount = parse_amount(tag_content(entry, "Amt"))
        if raw_amount is None:
            logger.warning(f"Skipping camt entry {index}: missing or unparseable amount")
            return None

        direction = _direction_from_code(tag_content(entry, "CdtDbtInd"))
        if direction is None:
            amount, direction = split_signed_amount(raw_amount)
        else:
            amount = abs(raw_amount)

        value_date = _date_of(tag_content(entry, "ValDt"))
        line_date = _date_of(tag_content(entry, "BookgDt")) or value_date
        if line_date is None:
            logger.warning(f"Skipping camt entry {index}: no booking or value date")
            return None

        name, account, bank = self._counterparty(entry, direction)

        return ParsedTransaction(
            lineDate=line_date,
            valueDate=value_date,
            amount=amount,
            direction=direction,
            description=self._text(self._remittance(entry)),
            counterpartyName=self._text(name),
            counterpartyAccount=self._text(account),
            counterpartyBank=self._text(bank),
            paymentReference=self._text(self._reference(entry)),
            paymentPurpose=self._text(tag_content(tag_content(entry, "Purp"), "Cd")),
            transactionType=classify_iso_code(self._bank_transaction_code(entry)),
        )

    def _remittance(self, entry: str) -> Optional[str]:
        remittance = tag_content(entry, "RmtInf")
        if remittance:
            unstructured = " ".join(part for part in all_tag_contents(remittance, "Ustrd") if part)
            if unstructured:
                return unstructured
            structured = tag_content(remittance, "Strd")
            if structured:
                return tag_content(structured, "Ref") or first_tag_content(structured, ("AddtlRmtInf", "Nb"))
        return first_tag_content(entry, ("AddtlTxInf", "AddtlNtryInf"))

    def _counterparty(
        self,
        entry: str,
        direction: Direction
    ) -> Tuple[Optional[str], Optional[str], Optional[str]]:
        """
        Name, account and bank of the other side of the entry.

        For a debit the account holder paid the creditor; for a credit the
        money came from the debtor.
        """
        if direction == Direction.DEBIT:
            party_tag, account_tag, agent_tag = "Cdtr", "CdtrAcct", "CdtrAgt"
        else:
            party_tag, account_tag, agent_tag = "Dbtr", "DbtrAcct", "DbtrAgt"

        parties = tag_content(entry, "RltdPties")
        name = tag_content(tag_content(parties, party_tag), "Nm")
        account = _account_id(tag_content(parties, account_tag))
        agent = tag_content(tag_content(entry, "RltdAgts"), agent_tag)
        bank = first_tag_content(agent, ("BICFI", "BIC", "Nm"))
        return name, account, bank

    def _reference(self, entry: str) -> Optional[str]:
        refs = tag_content(entry, "Refs")
        for tag in ("EndToEndId", "InstrId"):
            value = tag_content(refs, tag)
            if value and value.upper() not in EMPTY_REFERENCES:
                return value
        return tag_content(entry, "AcctSvcrRef")

    def _bank_transaction_code(self, entry: str) -> Optional[str]:
        """Domain family/sub-family codes and the proprietary code, space separated."""
        code_block = tag_content(entry, "BkTxCd")
        if not code_block:
            return None
        parts = [
            tag_content(tag_content(code_block, "Domn"), "Cd"),
            tag_content(tag_content(code_block, "Fmly"), "Cd"),
            tag_content(code_block, "SubFmlyCd"),
            tag_content(tag_content(code_block, "Prtry"), "Cd"),
        ]
        return " ".join(part for part in parts if part) or None
