"""
Resolves the declared account identifier of a statement to one of the
tenant's registered bank accounts.
"""
import logging
from typing import List, Optional

from bank_ingest.models.bank_account import BankAccount, compact_identifier
from bank_ingest.services.statement_store import StatementStore
from bank_ingest.utils.config import IngestionConfig, DEFAULT_CONFIG

logger = logging.getLogger(__name__)

# Length of the IBAN country code plus check digits
IBAN_PREFIX_LENGTH = 4


def _digits(value: Optional[str]) -> str:
    return "".join(ch for ch in value or "" if ch.isdigit())


class AccountResolver:
    """
    Matching cascade, first hit wins:

    1. an explicit account chosen by the caller,
    2. exact IBAN match,
    3. the IBAN without its country/check-digit prefix against local account numbers,
    4. the last N digits against registered account numbers, only if exactly one matches.

    No match is a valid outcome; the statement is then stored unlinked.
    """

    def __init__(self, store: StatementStore, config: Optional[IngestionConfig] = None):
        self.store = store
        self.config = config or DEFAULT_CONFIG

    def resolve(
        self,
        tenant_id: str,
        declared_identifier: Optional[str],
        explicit_account_id: Optional[str] = None
    ) -> Optional[str]:
        """
        Return the matching account id, or None if no strategy matched.

        Args:
            tenant_id: Owning tenant; only its accounts are considered
            declared_identifier: IBAN or local account number from the file
            explicit_account_id: Account pre-selected by the caller

        Returns:
            The account id or None
        """
        if explicit_account_id:
            logger.info(f"Using explicit bank account {explicit_account_id} for tenant {tenant_id}")
            return explicit_account_id

        declared = compact_identifier(declared_identifier)
        if not declared:
            logger.info("Statement declares no account identifier; leaving it unlinked")
            return None

        account = self._single(self.store.find_accounts_by_iban(tenant_id, declared), "IBAN")
        if account:
            return account.account_id

        if len(declared) > IBAN_PREFIX_LENGTH and declared[:2].isalpha():
            local_number = declared[IBAN_PREFIX_LENGTH:]
            account = self._single(self.store.find_accounts_by_number(tenant_id, local_number), "IBAN body")
            if account:
                return account.account_id
        else:
            account = self._single(self.store.find_accounts_by_number(tenant_id, declared), "account number")
            if account:
                return account.account_id

        account = self._match_suffix(tenant_id, declared)
        if account:
            return account.account_id

        logger.warning(f"No bank account of tenant {tenant_id} matches declared identifier {declared}")
        return None

    def _single(self, candidates: List[BankAccount], strategy: str) -> Optional[BankAccount]:
        if not candidates:
            return None
        if len(candidates) > 1:
            logger.warning(
                f"{len(candidates)} accounts matched by {strategy}; using {candidates[0].account_id}"
            )
        else:
            logger.info(f"Resolved bank account {candidates[0].account_id} by {strategy}")
        return candidates[0]

    def _match_suffix(self, tenant_id: str, declared: str) -> Optional[BankAccount]:
        """Last-resort match on trailing digits; ambiguous matches resolve to nothing."""
        digits_needed = self.config.suffix_match_digits
        declared_digits = _digits(declared[IBAN_PREFIX_LENGTH:] if declared[:2].isalpha() else declared)
        if len(declared_digits) < digits_needed:
            return None
        suffix = declared_digits[-digits_needed:]

        matches = [
            account for account in self.store.list_tenant_accounts(tenant_id)
            if (account.account_number_suffix_source or "").endswith(suffix)
        ]
        if len(matches) == 1:
            logger.info(f"Resolved bank account {matches[0].account_id} by {digits_needed}-digit suffix")
            return matches[0]
        if matches:
            logger.warning(
                f"Suffix {suffix} matches {len(matches)} accounts of tenant {tenant_id}; not linking"
            )
        return None
