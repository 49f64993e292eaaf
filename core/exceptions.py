"""
Core — Exception Handling

Domain exceptions and the DRF exception handler for consistent API
error envelopes. Each exception's ``default_code`` doubles as the
per-item error code reported by bulk stock operations.

@file core/exceptions.py
"""

import logging

from django.core.exceptions import PermissionDenied, ValidationError
from django.db import InterfaceError, OperationalError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger('wms')


# ---------------------------------------------------------------------------
# Domain exceptions
# ---------------------------------------------------------------------------

class BusinessRuleViolation(APIException):
    """Raised when input or a business rule is violated at the service layer."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Business rule violation.'
    default_code = 'VALIDATION'


class ResourceNotFoundError(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Resource not found.'
    default_code = 'NOT_FOUND'


class StockNotFoundError(ResourceNotFoundError):
    default_detail = 'Stock record not found.'
    default_code = 'STOCK_NOT_FOUND'


class InsufficientStockError(APIException):
    """Requested quantity exceeds what the stock record holds."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Insufficient quantity for this operation.'
    default_code = 'INSUFFICIENT_QUANTITY'


class StatusRestrictedError(APIException):
    """The entity, its location or its lot carries a restricting status."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Operation blocked by status.'
    default_code = 'STATUS_RESTRICTED'


class StatusEffectMismatch(StatusRestrictedError):
    """A one-way status (inbound/outbound/audit only) forbids this operation kind."""
    default_detail = 'Status does not allow this operation.'
    default_code = 'STATUS_EFFECT_MISMATCH'


class InvalidTargetError(BusinessRuleViolation):
    default_detail = 'Invalid target location.'
    default_code = 'INVALID_TARGET'


class MissingTargetWarehouseError(BusinessRuleViolation):
    default_detail = 'Target warehouse is required for cross-warehouse transfers.'
    default_code = 'MISSING_TARGET_WAREHOUSE'


class ConcurrentUpdateError(APIException):
    """A conditional update matched no row: another writer got there first."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Stock changed concurrently; retry the operation.'
    default_code = 'CONFLICT'


class DuplicateResourceError(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Resource already exists.'
    default_code = 'DUPLICATE_RESOURCE'


class InfrastructureError(APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'Datastore unavailable.'
    default_code = 'INFRASTRUCTURE'


# ---------------------------------------------------------------------------
# Standard exception handler
# ---------------------------------------------------------------------------

def _first_message(errors) -> str:
    if isinstance(errors, dict):
        for value in errors.values():
            message = _first_message(value)
            if message:
                return message
        return ''
    if isinstance(errors, (list, tuple)):
        return _first_message(errors[0]) if errors else ''
    return str(errors)


def standard_exception_handler(exc, context):
    """
    Wraps every error response in the standard envelope:
      { "success": false, "message": "...", "errors": {...}, "code": "ERROR_CODE" }
    """
    if isinstance(exc, Http404):
        exc = ResourceNotFoundError()
    elif isinstance(exc, PermissionDenied):
        exc = APIException(detail='Permission denied.', code='PERMISSION_DENIED')
        exc.status_code = status.HTTP_403_FORBIDDEN
    elif isinstance(exc, (OperationalError, InterfaceError)):
        logger.exception('Datastore failure in view: %s', exc)
        exc = InfrastructureError()
    elif isinstance(exc, ValidationError):
        errors = exc.message_dict if hasattr(exc, 'message_dict') else {'detail': exc.messages}
        data = {
            'success': False,
            'message': _first_message(errors),
            'errors': errors,
            'code': 'VALIDATION',
        }
        return Response(data, status=status.HTTP_400_BAD_REQUEST)

    response = exception_handler(exc, context)

    if response is not None:
        errors = {}
        code = 'VALIDATION' if isinstance(exc, DRFValidationError) else getattr(exc, 'default_code', 'ERROR')

        if isinstance(response.data, dict):
            errors = response.data
            code = response.data.pop('code', code) if 'code' in response.data else code
        elif isinstance(response.data, list):
            errors = {'detail': response.data}
        else:
            errors = {'detail': [str(response.data)]}

        response.data = {
            'success': False,
            'message': _first_message(errors),
            'errors': errors,
            'code': code,
        }

    if response is None:
        logger.exception('Unhandled exception in view: %s', exc)
        return Response(
            {
                'success': False,
                'message': 'Internal server error.',
                'errors': {'detail': ['Internal server error.']},
                'code': 'INTERNAL_ERROR',
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return response
