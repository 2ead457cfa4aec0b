import base64
import binascii
import json
import uuid
from datetime import date
from decimal import Decimal
from typing import Any, Dict


class DecimalEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, Decimal):
            # Always return as string to preserve precision and ensure consistent type
            return str(obj)
        if isinstance(obj, uuid.UUID):
            return str(obj)
        if isinstance(obj, date):
            return obj.isoformat()
        return super(DecimalEncoder, self).default(obj)


def create_response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    """Create a standardized API response."""
    return {
        "statusCode": status_code,
        "headers": {
            "Content-Type": "application/json",
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Headers": "Content-Type,Authorization",
            "Access-Control-Allow-Methods": "POST,OPTIONS"
        },
        "body": json.dumps(body, cls=DecimalEncoder)
    }


def handle_error(status_code: int, message: str) -> Dict[str, Any]:
    """Create a standardized error response."""
    return create_response(status_code, {"error": message})


def event_payload(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Extract the request payload from a Lambda event.

    API Gateway events carry a JSON `body` (possibly base64-encoded);
    direct invocations pass the payload as the event itself.
    Raises ValueError if the body is not a JSON object.
    """
    if 'body' not in event:
        return event

    body = event.get('body') or '{}'
    if event.get('isBase64Encoded'):
        try:
            body = base64.b64decode(body).decode('utf-8')
        except (binascii.Error, UnicodeDecodeError) as e:
            raise ValueError(f"Invalid base64 request body: {str(e)}")
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in request body: {str(e)}")
    if not isinstance(payload, dict):
        raise ValueError("Request body must be a JSON object")
    return payload


def decode_base64_content(value: str) -> bytes:
    """Decode a base64 file payload; raises ValueError on malformed input."""
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"rawContent is not valid base64: {str(e)}")
