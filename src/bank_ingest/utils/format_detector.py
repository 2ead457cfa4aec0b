"""
Format detection for bank statements based on content inspection.

No file extension or declared content type is trusted; the classification is
made purely from marker sequences in a bounded prefix of the normalized text.
"""
import logging
from typing import Optional, Union

from bank_ingest.models.statement import StatementFormat
from bank_ingest.utils.config import IngestionConfig, DEFAULT_CONFIG
from bank_ingest.utils.tag_extractor import has_tag

logger = logging.getLogger(__name__)

# ISO 20022 bank-to-customer statement markers
ISO_NAMESPACE_MARKER = "camt.053"
ISO_ROOT_TAGS = ("BkToCstmrStmt", "Stmt")

# SWIFT fields that must both be present
SWIFT_REQUIRED_FIELDS = (":20:", ":60F:")

# Encodings tried in order when the payload arrives as bytes
FALLBACK_ENCODINGS = ("utf-8-sig", "cp1250", "latin-1")


def decode_content(content: Union[bytes, str]) -> str:
    """
    Decode an uploaded payload to text.

    Regional exports are frequently Windows-1250 rather than UTF-8; latin-1
    is the final fallback and never fails.
    """
    if isinstance(content, str):
        return content
    for encoding in FALLBACK_ENCODINGS:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            logger.debug(f"Content is not valid {encoding}, trying next encoding")
    return content.decode('latin-1', errors='replace')


def is_iso20022(text: str) -> bool:
    if ISO_NAMESPACE_MARKER in text.lower():
        return True
    return any(has_tag(text, tag) for tag in ISO_ROOT_TAGS)


def is_swift(text: str) -> bool:
    return all(field in text for field in SWIFT_REQUIRED_FIELDS)


def is_national(text: str, config: IngestionConfig) -> bool:
    return any(has_tag(text, tag) for tag in config.national_dialect.root_tags)


def detect_format(normalized: str, config: Optional[IngestionConfig] = None) -> StatementFormat:
    """
    Classify envelope-normalized content into a StatementFormat.

    Checks run in a fixed order: ISO 20022 and SWIFT markers are unambiguous
    and go first; the national check is broad and goes last.

    Args:
        normalized: Output of envelope.normalize
        config: Supplies the prefix bound and the national root tag list

    Returns:
        StatementFormat value, UNKNOWN if no marker matched
    """
    config = config or DEFAULT_CONFIG
    if not normalized:
        return StatementFormat.UNKNOWN

    try:
        prefix = normalized[:config.detection_prefix_chars]

        if is_iso20022(prefix):
            detected = StatementFormat.ISO20022_XML
        elif is_swift(prefix):
            detected = StatementFormat.SWIFT_TEXT
        elif is_national(prefix, config):
            detected = StatementFormat.NATIONAL_XML
        else:
            detected = StatementFormat.UNKNOWN

        logger.info(f"Statement format detection result: {detected.value} (inspected {len(prefix)} chars)")
        return detected
    except Exception as e:
        logger.error(f"Error detecting statement format: {str(e)}")
        return StatementFormat.UNKNOWN
