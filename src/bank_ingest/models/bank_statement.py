"""
Persisted statement and statement line records.

Both are built from a ParsedStatement once extraction succeeded and are
handed to the storage collaborator; ids are derived from the import id so
re-writing the same import never creates a second record set.
"""
import uuid
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ConfigDict

from bank_ingest.models.statement import (
    Direction,
    ParsedStatement,
    ParsedTransaction,
    StatementFormat,
    TransactionType,
)
from bank_ingest.utils.transaction_utils import (
    generate_line_hash,
    line_id_for_statement,
    statement_id_for_import,
)

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def _to_dynamodb_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    return value


class BankStatement(BaseModel):
    """One imported statement; lines reference it through statement_id."""
    statement_id: str = Field(alias="statementId")
    tenant_id: str = Field(alias="tenantId")
    import_id: str = Field(alias="importId")
    bank_account_id: Optional[str] = Field(default=None, alias="bankAccountId")
    format: StatementFormat
    statement_date: date = Field(alias="statementDate")
    statement_number: Optional[str] = Field(default=None, alias="statementNumber")
    account_identifier: Optional[str] = Field(default=None, alias="accountIdentifier")
    currency: Optional[str] = None
    opening_balance: Optional[Decimal] = Field(default=None, alias="openingBalance")
    closing_balance: Optional[Decimal] = Field(default=None, alias="closingBalance")
    period_start: Optional[date] = Field(default=None, alias="periodStart")
    period_end: Optional[date] = Field(default=None, alias="periodEnd")
    line_count: int = Field(default=0, alias="lineCount")
    status: str = "imported"
    created_at: int = Field(default_factory=_now_ms, alias="createdAt")

    model_config = ConfigDict(populate_by_name=True, use_enum_values=False)

    @classmethod
    def from_parsed(
        cls,
        parsed: ParsedStatement,
        tenant_id: str,
        import_id: str,
        bank_account_id: Optional[str]
    ) -> "BankStatement":
        statement_date = parsed.statement_date or datetime.now(timezone.utc).date()
        return cls(
            statementId=statement_id_for_import(tenant_id, import_id),
            tenantId=tenant_id,
            importId=import_id,
            bankAccountId=bank_account_id,
            format=parsed.format,
            statementDate=statement_date,
            statementNumber=parsed.statement_number,
            accountIdentifier=parsed.account_identifier,
            currency=parsed.currency,
            openingBalance=parsed.opening_balance,
            closingBalance=parsed.closing_balance,
            periodStart=parsed.period_start,
            periodEnd=parsed.period_end,
            lineCount=parsed.transaction_count,
        )

    def to_dynamodb_item(self) -> Dict[str, Any]:
        data = self.model_dump(by_alias=True, exclude_none=True)
        return {key: _to_dynamodb_value(value) for key, value in data.items()}

    @classmethod
    def from_dynamodb_item(cls, data: Dict[str, Any]) -> "BankStatement":
        converted_data = data.copy()
        for field in ('lineCount', 'createdAt'):
            if converted_data.get(field) is not None:
                converted_data[field] = int(converted_data[field])
        return cls.model_validate(converted_data)


class StatementLine(BaseModel):
    """A persisted statement line tagged with the originating import."""
    line_id: str = Field(alias="lineId")
    statement_id: str = Field(alias="statementId")
    tenant_id: str = Field(alias="tenantId")
    import_id: str = Field(alias="importId")
    line_order: int = Field(alias="lineOrder", ge=1)
    line_date: date = Field(alias="lineDate")
    value_date: Optional[date] = Field(default=None, alias="valueDate")
    amount: Decimal = Field(ge=0)
    direction: Direction
    description: Optional[str] = None
    counterparty_name: Optional[str] = Field(default=None, alias="counterpartyName")
    counterparty_account: Optional[str] = Field(default=None, alias="counterpartyAccount")
    counterparty_bank: Optional[str] = Field(default=None, alias="counterpartyBank")
    payment_reference: Optional[str] = Field(default=None, alias="paymentReference")
    payment_purpose: Optional[str] = Field(default=None, alias="paymentPurpose")
    transaction_type: TransactionType = Field(default=TransactionType.UNKNOWN, alias="transactionType")
    match_status: str = Field(default="unmatched", alias="matchStatus")
    line_hash: Optional[int] = Field(default=None, alias="lineHash")
    created_at: int = Field(default_factory=_now_ms, alias="createdAt")

    model_config = ConfigDict(populate_by_name=True, use_enum_values=False)

    @classmethod
    def from_parsed(
        cls,
        transaction: ParsedTransaction,
        statement: BankStatement,
        line_order: int
    ) -> "StatementLine":
        return cls(
            lineId=line_id_for_statement(statement.statement_id, line_order),
            statementId=statement.statement_id,
            tenantId=statement.tenant_id,
            importId=statement.import_id,
            lineOrder=line_order,
            lineDate=transaction.line_date,
            valueDate=transaction.value_date,
            amount=transaction.amount,
            direction=transaction.direction,
            description=transaction.description,
            counterpartyName=transaction.counterparty_name,
            counterpartyAccount=transaction.counterparty_account,
            counterpartyBank=transaction.counterparty_bank,
            paymentReference=transaction.payment_reference,
            paymentPurpose=transaction.payment_purpose,
            transactionType=transaction.transaction_type,
            lineHash=generate_line_hash(
                tenant_id=statement.tenant_id,
                line_date=transaction.line_date,
                amount=transaction.amount,
                direction=transaction.direction.value,
                description=transaction.description
            ),
        )

    def to_dynamodb_item(self) -> Dict[str, Any]:
        data = self.model_dump(by_alias=True, exclude_none=True)
        return {key: _to_dynamodb_value(value) for key, value in data.items()}

    @classmethod
    def from_dynamodb_item(cls, data: Dict[str, Any]) -> "StatementLine":
        converted_data = data.copy()
        for field in ('lineOrder', 'lineHash', 'createdAt'):
            if converted_data.get(field) is not None:
                converted_data[field] = int(converted_data[field])
        return cls.model_validate(converted_data)


def build_statement_lines(parsed: ParsedStatement, statement: BankStatement) -> List[StatementLine]:
    """Build line records in file order with 1-based line_order."""
    return [
        StatementLine.from_parsed(tx, statement, order)
        for order, tx in enumerate(parsed.transactions, start=1)
    ]
