"""
Canonical statement models produced by every format extractor.

A ParsedStatement only lives for the duration of one ingestion call; the
persisted counterparts are in models.bank_statement.
"""
import enum
import logging
from datetime import date
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator, ConfigDict

logger = logging.getLogger(__name__)

# Hard ceiling for free-text fields; extractors truncate to the configured
# length (IngestionConfig.max_text_length) which may not exceed this.
TEXT_FIELD_CEILING = 1000


class StatementFormat(str, enum.Enum):
    """Closed set of formats the detector can classify a document into."""
    ISO20022_XML = "ISO20022_XML"
    SWIFT_TEXT = "SWIFT_TEXT"
    NATIONAL_XML = "NATIONAL_XML"
    UNKNOWN = "UNKNOWN"


class Direction(str, enum.Enum):
    """Enum for the side of a statement line"""
    CREDIT = "credit"
    DEBIT = "debit"


class TransactionType(str, enum.Enum):
    """Enum for transaction classification"""
    WIRE = "WIRE"
    FEE = "FEE"
    SALARY = "SALARY"
    TAX = "TAX"
    CARD = "CARD"
    UNKNOWN = "UNKNOWN"


class ParsedTransaction(BaseModel):
    """
    One normalized statement line.

    The amount is always a non-negative magnitude; the sign convention of the
    source file has been resolved into `direction` before the line is built.
    """
    line_date: date = Field(alias="lineDate")
    value_date: Optional[date] = Field(default=None, alias="valueDate")
    amount: Decimal = Field(ge=0)
    direction: Direction
    description: Optional[str] = Field(default=None, max_length=TEXT_FIELD_CEILING)
    counterparty_name: Optional[str] = Field(default=None, alias="counterpartyName", max_length=TEXT_FIELD_CEILING)
    counterparty_account: Optional[str] = Field(default=None, alias="counterpartyAccount", max_length=TEXT_FIELD_CEILING)
    counterparty_bank: Optional[str] = Field(default=None, alias="counterpartyBank", max_length=TEXT_FIELD_CEILING)
    payment_reference: Optional[str] = Field(default=None, alias="paymentReference", max_length=TEXT_FIELD_CEILING)
    payment_purpose: Optional[str] = Field(default=None, alias="paymentPurpose", max_length=TEXT_FIELD_CEILING)
    transaction_type: TransactionType = Field(default=TransactionType.UNKNOWN, alias="transactionType")

    model_config = ConfigDict(
        populate_by_name=True,
        json_encoders={
            Decimal: str
        },
        use_enum_values=False  # Preserve enum objects (not strings) for type safety
    )

    @field_validator('amount', mode='before')
    @classmethod
    def ensure_amount_is_decimal(cls, v: Any) -> Decimal:
        if not isinstance(v, Decimal):
            try:
                return Decimal(str(v))
            except Exception as e:
                raise ValueError(f"Invalid amount value: {v}. Could not convert to Decimal.") from e
        return v

    @property
    def signed_amount(self) -> Decimal:
        """Amount with the direction folded back in (debits negative)."""
        return -self.amount if self.direction == Direction.DEBIT else self.amount


class ParsedStatement(BaseModel):
    """
    Canonical output of a format extractor.

    `transactions` keeps file order, which is not necessarily chronological.
    """
    format: StatementFormat
    account_identifier: Optional[str] = Field(default=None, alias="accountIdentifier")
    statement_number: Optional[str] = Field(default=None, alias="statementNumber")
    currency: Optional[str] = None
    opening_balance: Optional[Decimal] = Field(default=None, alias="openingBalance")
    closing_balance: Optional[Decimal] = Field(default=None, alias="closingBalance")
    period_start: Optional[date] = Field(default=None, alias="periodStart")
    period_end: Optional[date] = Field(default=None, alias="periodEnd")
    transactions: List[ParsedTransaction] = Field(default_factory=list)

    model_config = ConfigDict(
        populate_by_name=True,
        json_encoders={
            Decimal: str
        },
        use_enum_values=False
    )

    @property
    def transaction_count(self) -> int:
        return len(self.transactions)

    @property
    def is_empty(self) -> bool:
        return not self.transactions

    @property
    def latest_line_date(self) -> Optional[date]:
        """Latest booking date across all lines, regardless of file order."""
        if not self.transactions:
            return None
        return max(tx.line_date for tx in self.transactions)

    @property
    def statement_date(self) -> Optional[date]:
        """Date the statement is filed under: period end, else the latest line."""
        return self.period_end or self.latest_line_date

    @property
    def total_credits(self) -> Decimal:
        return sum((tx.amount for tx in self.transactions if tx.direction == Direction.CREDIT), Decimal(0))

    @property
    def total_debits(self) -> Decimal:
        return sum((tx.amount for tx in self.transactions if tx.direction == Direction.DEBIT), Decimal(0))

    def balances_reconcile(self) -> Optional[bool]:
        """
        Check opening + credits - debits == closing.

        Returns None when either balance is missing from the file.
        """
        if self.opening_balance is None or self.closing_balance is None:
            return None
        expected = self.opening_balance + self.total_credits - self.total_debits
        return expected == self.closing_balance
