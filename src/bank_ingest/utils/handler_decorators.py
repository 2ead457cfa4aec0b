"""
Handler decorators for reducing boilerplate code in Lambda handlers.
"""

import logging
import traceback
from functools import wraps
from typing import Any, Callable, Dict

from pydantic import ValidationError

from bank_ingest.utils.lambda_utils import create_response

logger = logging.getLogger(__name__)


def _validation_message(error: ValidationError) -> str:
    fields = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail.get('loc', ()))
        fields.append(f"{location}: {detail.get('msg')}" if location else detail.get('msg', ''))
    return "Invalid request: " + "; ".join(fields)


def standard_error_handling(func: Callable) -> Callable:
    """
    Decorator that provides standard error handling for Lambda handlers.

    Maps common exceptions to appropriate HTTP status codes:
    - ValidationError, ValueError, KeyError -> 400 Bad Request
    - Exception -> 500 Internal Server Error

    A handler returning a dict with statusCode is passed through; any other
    result is wrapped in a 200 response.
    """
    @wraps(func)
    def wrapper(*args, **kwargs) -> Dict[str, Any]:
        try:
            result = func(*args, **kwargs)

            if isinstance(result, dict) and "statusCode" in result:
                return result

            return create_response(200, result)

        except ValidationError as e:
            logger.error(f"Validation error in {func.__name__}: {str(e)}")
            return create_response(400, {"error": _validation_message(e)})

        except (ValueError, KeyError) as e:
            logger.error(f"Validation error in {func.__name__}: {str(e)}")
            return create_response(400, {"error": str(e)})

        except Exception as e:
            logger.error(f"Unexpected error in {func.__name__}: {str(e)}")
            logger.error(f"Stacktrace: {traceback.format_exc()}")
            return create_response(500, {"error": f"Error in {func.__name__.replace('_handler', '')}: {str(e)}"})

    return wrapper
