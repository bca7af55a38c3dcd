"""
Core — Exception Handler Tests

The standard error envelope, including the figures carried by
constraint errors.

@file core/tests/test_exceptions.py
"""

from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import ValidationError

from core.exceptions import (
    CapacityExceededError,
    ConcurrencyConflict,
    InsufficientUnallocatedError,
    InvalidInputError,
    TransferAbortedError,
    standard_exception_handler,
)


class TestStandardExceptionHandler:
    def test_constraint_figures_merged_into_errors(self):
        exc = InsufficientUnallocatedError(requested=600, available=482)
        response = standard_exception_handler(exc, {})
        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['success'] is False
        assert response.data['code'] == 'INSUFFICIENT_UNALLOCATED'
        assert response.data['errors']['requested'] == 600
        assert response.data['errors']['available'] == 482

    def test_capacity_error_custom_detail(self):
        exc = CapacityExceededError(detail='House H1 is full.', capacity=500, occupancy=450)
        response = standard_exception_handler(exc, {})
        assert response.data['errors']['detail'] == 'House H1 is full.'
        assert response.data['errors']['capacity'] == 500

    def test_invalid_input_is_400(self):
        response = standard_exception_handler(InvalidInputError(), {})
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'INVALID_INPUT'

    def test_http404_maps_to_not_found(self):
        response = standard_exception_handler(Http404(), {})
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['code'] == 'RESOURCE_NOT_FOUND'

    def test_concurrency_conflict_is_503(self):
        response = standard_exception_handler(ConcurrencyConflict(), {})
        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE

    def test_transfer_aborted_is_500(self):
        response = standard_exception_handler(TransferAbortedError(), {})
        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.data['code'] == 'TRANSFER_ABORTED'

    def test_drf_validation_error(self):
        response = standard_exception_handler(ValidationError({'quantity': ['Required.']}), {})
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['errors']['quantity'] == ['Required.']

    def test_unhandled_exception(self):
        response = standard_exception_handler(RuntimeError('boom'), {})
        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.data['code'] == 'INTERNAL_ERROR'
