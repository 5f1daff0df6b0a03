"""
Exception types and the REST Framework exception handler.

Every error leaves the API as ``{"success": false, "statusCode", "code",
"message"}`` so the mobile client can show ``message`` to the user verbatim.
"""
import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import (
    APIException,
    ValidationError as DRFValidationError,
)
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class Conflict(APIException):
    """Duplicate unique key or a state that forbids the requested change."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The request conflicts with the current state of the resource.'
    default_code = 'conflict'


def custom_exception_handler(exc, context):
    """
    Custom exception handler that returns consistent JSON error responses.

    Response format:
    {
        "success": false,
        "statusCode": 400,
        "code": "error_code",
        "message": "Human-readable message",
        "errors": { ... }  // optional, for field-level validation errors
    }
    """
    # Convert Django ValidationError to DRF ValidationError
    if isinstance(exc, DjangoValidationError):
        exc = DRFValidationError(detail=exc.message_dict if hasattr(exc, 'message_dict') else exc.messages)

    # Call DRF's default exception handler first
    response = exception_handler(exc, context)

    if response is None:
        # Unhandled exception
        logger.exception(
            'Unhandled exception in %s',
            context.get('view', 'unknown view'),
            exc_info=exc,
        )
        return Response(
            {
                'success': False,
                'statusCode': status.HTTP_500_INTERNAL_SERVER_ERROR,
                'code': 'internal_error',
                'message': 'An unexpected error occurred. Please try again later.',
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    payload = {
        'success': False,
        'statusCode': response.status_code,
    }
    payload.update(_format_error(exc, response))
    response.data = payload
    return response


def _format_error(exc, response):
    """Format the error payload based on exception type."""
    if isinstance(exc, DRFValidationError):
        return {
            'code': 'validation_error',
            'message': first_error_message(response.data) or 'Invalid input.',
            'errors': response.data,
        }

    if isinstance(exc, Http404):
        return {
            'code': 'not_found',
            'message': 'The requested resource was not found.',
        }

    if isinstance(exc, APIException):
        codes = exc.get_codes()
        detail = exc.detail
        # simplejwt wraps its messages as {"detail": ..., "code": ...}
        if isinstance(detail, dict) and 'detail' in detail:
            detail = detail['detail']
        return {
            'code': codes if isinstance(codes, str) else exc.default_code,
            'message': first_error_message(detail) or str(exc.default_detail),
        }

    return {
        'code': 'error',
        'message': 'An error occurred.',
    }


def first_error_message(detail):
    """Return the first human-readable message nested in a validation payload."""
    if isinstance(detail, dict):
        for value in detail.values():
            message = first_error_message(value)
            if message:
                return message
        return None
    if isinstance(detail, (list, tuple)):
        for value in detail:
            message = first_error_message(value)
            if message:
                return message
        return None
    if detail is None:
        return None
    return str(detail)
