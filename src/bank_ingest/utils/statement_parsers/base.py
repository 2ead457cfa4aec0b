"""
Base extractor interface for bank statement formats.

Every supported format turns an envelope-normalized document into a
ParsedStatement. Extractors never raise: a document they cannot make sense of
comes back with an empty transaction list, which the ingestion service treats
as quarantine-worthy regardless of the cause.
"""
import logging
from abc import ABC, abstractmethod
from typing import Optional

from bank_ingest.models.statement import ParsedStatement, StatementFormat
from bank_ingest.utils.config import IngestionConfig, DEFAULT_CONFIG
from bank_ingest.utils.normalization import truncate_text

logger = logging.getLogger(__name__)


class StatementExtractor(ABC):
    """
    Abstract base class for format extractors.

    Subclasses implement `_extract`; callers use `extract`, which guarantees
    the never-raise contract.
    """

    format: StatementFormat = StatementFormat.UNKNOWN

    def __init__(self, config: Optional[IngestionConfig] = None):
        self.config = config or DEFAULT_CONFIG

    def extract(self, normalized: str) -> ParsedStatement:
        """
        Parse a normalized document into a ParsedStatement.

        Args:
            normalized: Output of envelope.normalize

        Returns:
            ParsedStatement; `transactions` is empty if nothing could be extracted
        """
        if not normalized or not normalized.strip():
            logger.warning(f"{self.format.value} extractor received empty content")
            return ParsedStatement(format=self.format)
        try:
            statement = self._extract(normalized)
        except Exception as e:
            logger.error(f"{self.format.value} extraction failed: {str(e)}", exc_info=True)
            return ParsedStatement(format=self.format)

        logger.info(
            f"{self.format.value} extractor produced {statement.transaction_count} transactions "
            f"for account {statement.account_identifier}"
        )
        return statement

    @abstractmethod
    def _extract(self, normalized: str) -> ParsedStatement:
        """Format-specific extraction; may raise, `extract` contains it."""
        pass

    def _text(self, value: Optional[str]) -> Optional[str]:
        """Truncate a free-text field to the configured storage length."""
        return truncate_text(value, self.config.max_text_length)
