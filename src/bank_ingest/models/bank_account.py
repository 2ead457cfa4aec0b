"""
Bank account models for the accounts a tenant has registered.
"""
import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from pydantic import BaseModel, Field, field_validator, ConfigDict

logger = logging.getLogger(__name__)


def compact_identifier(value: Optional[str]) -> Optional[str]:
    """Strip spaces and dashes and upper-case an IBAN or account number."""
    if value is None:
        return None
    compact = "".join(ch for ch in value if ch not in " -\t\r\n").upper()
    return compact or None


class BankAccount(BaseModel):
    """
    A tenant's registered bank account.

    `iban` and `account_number` are stored compacted (no spaces or dashes) so
    lookups can compare them with a declared statement identifier directly.
    """
    account_id: str = Field(alias="accountId")
    tenant_id: str = Field(alias="tenantId")
    iban: Optional[str] = Field(default=None, max_length=34)
    account_number: Optional[str] = Field(default=None, alias="accountNumber", max_length=50)
    name: Optional[str] = Field(default=None, max_length=100)
    currency: Optional[str] = Field(default=None, max_length=3)
    is_active: bool = Field(default=True, alias="isActive")
    created_at: int = Field(default_factory=lambda: int(datetime.now(timezone.utc).timestamp() * 1000), alias="createdAt")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator('iban', 'account_number', mode='before')
    @classmethod
    def compact_identifiers(cls, v: Optional[str]) -> Optional[str]:
        return compact_identifier(v)

    @property
    def account_number_suffix_source(self) -> Optional[str]:
        """Digits used for suffix matching: account number, else IBAN body."""
        source = self.account_number or (self.iban[4:] if self.iban and len(self.iban) > 4 else self.iban)
        if not source:
            return None
        digits = "".join(ch for ch in source if ch.isdigit())
        return digits or None

    def to_dynamodb_item(self) -> Dict[str, Any]:
        """Convert to DynamoDB item format."""
        return self.model_dump(by_alias=True, exclude_none=True)

    @classmethod
    def from_dynamodb_item(cls, data: Dict[str, Any]) -> "BankAccount":
        """Create from DynamoDB item data."""
        converted_data = data.copy()
        if converted_data.get('createdAt') is not None:
            converted_data['createdAt'] = int(converted_data['createdAt'])
        return cls.model_validate(converted_data)
