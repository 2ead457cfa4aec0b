"""
Format extractors and the dispatcher that selects one by detected format.
"""
import logging
from typing import Dict, Optional, Type

from bank_ingest.models.statement import ParsedStatement, StatementFormat
from bank_ingest.utils.config import IngestionConfig
from bank_ingest.utils.statement_parsers.base import StatementExtractor
from bank_ingest.utils.statement_parsers.camt053 import Camt053Extractor
from bank_ingest.utils.statement_parsers.mt940 import Mt940Extractor
from bank_ingest.utils.statement_parsers.national_xml import NationalXmlExtractor

logger = logging.getLogger(__name__)

EXTRACTORS: Dict[StatementFormat, Type[StatementExtractor]] = {
    StatementFormat.ISO20022_XML: Camt053Extractor,
    StatementFormat.SWIFT_TEXT: Mt940Extractor,
    StatementFormat.NATIONAL_XML: NationalXmlExtractor,
}


def get_extractor(
    statement_format: StatementFormat,
    config: Optional[IngestionConfig] = None
) -> Optional[StatementExtractor]:
    """Extractor instance for a format, or None if the format has no extractor."""
    extractor_class = EXTRACTORS.get(statement_format)
    if extractor_class is None:
        return None
    return extractor_class(config)


def parse_statement(
    normalized: str,
    statement_format: StatementFormat,
    config: Optional[IngestionConfig] = None
) -> ParsedStatement:
    """
    Parse normalized content with the extractor for `statement_format`.

    Args:
        normalized: Envelope-normalized document
        statement_format: Result of format detection
        config: Ingestion configuration passed to the extractor

    Returns:
        ParsedStatement, empty when the format is unsupported or nothing was extracted
    """
    extractor = get_extractor(statement_format, config)
    if extractor is None:
        logger.warning(f"Unsupported statement format for parsing: {statement_format.value}")
        return ParsedStatement(format=statement_format)
    return extractor.extract(normalized)


__all__ = [
    'StatementExtractor',
    'Camt053Extractor',
    'Mt940Extractor',
    'NationalXmlExtractor',
    'EXTRACTORS',
    'get_extractor',
    'parse_statement',
]
