"""
Lambda handler that ingests one uploaded bank statement.

Accepts either an API Gateway event with a JSON body or a direct invocation
whose event is the payload itself:

    {"rawContent": "...", "importId": "...", "tenantId": "...",
     "explicitBankAccountId": "...", "contentEncoding": "base64"}

`contentEncoding` is optional; with "base64" the raw content is decoded and
its character set detected before ingestion.
"""
import logging
import logging.config
import os
from typing import Any, Dict, Optional

from bank_ingest.models.import_record import IngestionFailure, IngestionRequest
from bank_ingest.services.ingestion_service import PersistenceError, StatementIngestionService
from bank_ingest.utils.config import IngestionConfig
from bank_ingest.utils.format_detector import decode_content
from bank_ingest.utils.handler_decorators import standard_error_handling
from bank_ingest.utils.lambda_utils import (
    create_response,
    decode_base64_content,
    event_payload,
    handle_error,
)

# Configure logging
log_conf = os.environ.get('LOGGING_CONFIG')
if log_conf:
    logging.config.fileConfig(log_conf)
else:
    logging.basicConfig(
        level=os.environ.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

logger = logging.getLogger(__name__)

_service: Optional[StatementIngestionService] = None


def get_service() -> StatementIngestionService:
    """Lazily build the service so cold starts pick up the environment once."""
    global _service
    if _service is None:
        _service = StatementIngestionService(config=IngestionConfig.from_environment())
    return _service


def build_request(payload: Dict[str, Any]) -> IngestionRequest:
    """Validate the payload into an IngestionRequest; raises ValidationError or ValueError."""
    data = dict(payload)
    if str(data.pop('contentEncoding', '') or '').lower() == 'base64' and isinstance(data.get('rawContent'), str):
        data['rawContent'] = decode_content(decode_base64_content(data['rawContent']))
    return IngestionRequest.model_validate(data)


@standard_error_handling
def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Ingest a statement and map the outcome to a response.

    200 with the success body, 422 when the import was quarantined, 400 for
    an invalid request, 500 when storage failed.
    """
    request = build_request(event_payload(event))
    logger.info(f"Received statement import {request.import_id} for tenant {request.tenant_id}")

    try:
        result = get_service().ingest(request)
    except PersistenceError as e:
        logger.error(f"Import {request.import_id} failed: {str(e)}")
        return handle_error(500, str(e))

    if isinstance(result, IngestionFailure):
        return create_response(422, result.to_response_body())
    return create_response(200, result.to_response_body())
