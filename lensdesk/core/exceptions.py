"""
API error types and the project-wide DRF exception handler.

Every error response has the shape ``{'error': message, 'code': code}``,
plus ``details`` for field validation errors.
"""
import logging

from django.db import IntegrityError
from django.db.models import ProtectedError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from .utils import log_error

logger = logging.getLogger('lensdesk.core')


class APIError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Request could not be processed'
    default_code = 'BAD_REQUEST'

    def __init__(self, message=None, code=None, status_code=None):
        self.message = message or self.default_detail
        self.code = code or self.default_code
        if status_code is not None:
            self.status_code = status_code
        super().__init__(detail=self.message, code=self.code)


class NotFoundError(APIError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Record not found'
    default_code = 'NOT_FOUND'


class ConflictError(APIError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'A record with this value already exists'
    default_code = 'DUPLICATE_ENTRY'


class DependencyError(APIError):
    default_detail = 'Record is referenced by other records'
    default_code = 'HAS_DEPENDENCIES'


class BusinessRuleError(APIError):
    default_detail = 'Operation not allowed'
    default_code = 'BUSINESS_RULE_VIOLATION'


def _first_message(detail):
    if isinstance(detail, dict):
        for value in detail.values():
            return _first_message(value)
    if isinstance(detail, (list, tuple)) and detail:
        return _first_message(detail[0])
    return str(detail)


def api_exception_handler(exc, context):
    """Shape DRF errors as ``{'error', 'code'}`` and record them in the error log"""
    request = context.get('request')

    if isinstance(exc, IntegrityError):
        exc = ConflictError(str(exc).split('\n')[0] or None)
    elif isinstance(exc, ProtectedError):
        exc = DependencyError('Record cannot be deleted because other records reference it')

    response = exception_handler(exc, context)

    if response is None:
        logger.error(f"Unhandled error on {getattr(request, 'path', '?')}: {str(exc)}", exc_info=exc)
        log_error(exc, request, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, code='INTERNAL_ERROR', severity='CRITICAL')
        return Response({'error': 'An unexpected error occurred', 'code': 'INTERNAL_ERROR'},
                        status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(exc, APIError):
        code = exc.code
        data = {'error': exc.message, 'code': code}
    elif isinstance(exc, ValidationError):
        code = 'VALIDATION_ERROR'
        data = {'error': _first_message(exc.detail), 'code': code, 'details': exc.detail}
    elif isinstance(exc, Http404):
        code = 'NOT_FOUND'
        data = {'error': 'Record not found', 'code': code}
    else:
        code = getattr(exc, 'default_code', 'ERROR')
        if isinstance(code, str):
            code = code.upper()
        data = {'error': _first_message(getattr(exc, 'detail', str(exc))), 'code': code}

    # 401s are not recorded
    if response.status_code != status.HTTP_401_UNAUTHORIZED:
        log_error(exc, request, status_code=response.status_code, code=code)

    response.data = data
    return response
