"""
Core — Exception Handling

Domain exceptions for the bird-count ledger and allocation table, and
the DRF exception handler producing consistent API error envelopes.

Constraint-family errors carry a ``figures`` dict (requested vs.
available numbers) which the handler merges into the error body so the
UI can show a precise message.

@file core/exceptions.py
"""

import logging

from django.core.exceptions import PermissionDenied, ValidationError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger('farmtrack')


# ---------------------------------------------------------------------------
# Domain exceptions
# ---------------------------------------------------------------------------

class BusinessRuleViolation(APIException):
    """Raised when a business rule is violated at the service layer."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Business rule violation.'
    default_code = 'BUSINESS_RULE_VIOLATION'


class InvalidInputError(BusinessRuleViolation):
    """Malformed request: negative or non-integer counts, missing deltas."""
    default_detail = 'Invalid input.'
    default_code = 'INVALID_INPUT'


class ResourceNotFoundError(APIException):
    """Entity missing or outside the caller's farm. Never reported as 403."""
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Resource not found.'
    default_code = 'RESOURCE_NOT_FOUND'


class ConstraintViolation(APIException):
    """The mutation would breach a ledger invariant."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Operation would violate a ledger constraint.'
    default_code = 'CONSTRAINT_VIOLATION'

    def __init__(self, detail=None, code=None, **figures):
        super().__init__(detail=detail, code=code)
        self.figures = figures


class InsufficientUnallocatedError(ConstraintViolation):
    default_detail = 'Not enough unallocated birds available in batch.'
    default_code = 'INSUFFICIENT_UNALLOCATED'


class InsufficientBirdsError(ConstraintViolation):
    default_detail = 'Insufficient birds in the source allocation.'
    default_code = 'INSUFFICIENT_BIRDS'


class CapacityExceededError(ConstraintViolation):
    default_detail = 'House capacity exceeded.'
    default_code = 'CAPACITY_EXCEEDED'


class ConcurrencyConflict(APIException):
    """A conditional write kept losing the race after the bounded retries."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'The record is being modified concurrently. Please retry.'
    default_code = 'CONCURRENCY_CONFLICT'


class TransferAbortedError(APIException):
    """A transfer failed after its debit; the debit was rolled back."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Transfer could not be completed; no birds were moved.'
    default_code = 'TRANSFER_ABORTED'


class AuditWriteFailure(Exception):
    """A bird-count history row could not be persisted after a committed mutation."""


class DuplicateResourceError(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Resource already exists.'
    default_code = 'DUPLICATE_RESOURCE'


# ---------------------------------------------------------------------------
# Standard exception handler
# ---------------------------------------------------------------------------

def standard_exception_handler(exc, context):
    """
    Wraps every error response in the standard envelope:
      { "success": false, "errors": {...}, "code": "ERROR_CODE" }
    """
    if isinstance(exc, Http404):
        exc = ResourceNotFoundError()
    elif isinstance(exc, PermissionDenied):
        exc = APIException(detail='Permission denied.', code='PERMISSION_DENIED')
        exc.status_code = status.HTTP_403_FORBIDDEN
    elif isinstance(exc, ValidationError):
        data = {
            'success': False,
            'errors': exc.message_dict if hasattr(exc, 'message_dict') else {'detail': exc.messages},
            'code': 'VALIDATION_ERROR',
        }
        return Response(data, status=status.HTTP_400_BAD_REQUEST)

    response = exception_handler(exc, context)

    if response is not None:
        errors = {}
        code = getattr(exc, 'default_code', 'ERROR')

        if isinstance(response.data, dict):
            errors = response.data
            code = response.data.pop('code', code) if 'code' in response.data else code
        elif isinstance(response.data, list):
            errors = {'detail': response.data}
        else:
            errors = {'detail': [str(response.data)]}

        figures = getattr(exc, 'figures', None)
        if figures:
            errors.update(figures)

        response.data = {
            'success': False,
            'errors': errors,
            'code': code,
        }

    if response is None:
        logger.exception('Unhandled exception in view: %s', exc)
        return Response(
            {'success': False, 'errors': {'detail': ['Internal server error.']}, 'code': 'INTERNAL_ERROR'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return response
