# api/exceptions.py - every error leaves the API as {"success": false, "message", "errors"?}
import logging

from django.conf import settings
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


def _first_message(detail):
    """Pull one human readable message out of a nested error structure"""
    if isinstance(detail, dict):
        for value in detail.values():
            return _first_message(value)
        return ''
    if isinstance(detail, (list, tuple)):
        return _first_message(detail[0]) if detail else ''
    return str(detail)


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        logger.error(
            "Unhandled error in %s", view.__class__.__name__ if view else 'view', exc_info=exc
        )
        body = {'success': False, 'message': 'Server error'}
        if settings.DEBUG:
            body['error'] = str(exc)
        return Response(body, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(exc, ValidationError):
        errors = response.data
        if not isinstance(errors, dict):
            errors = {'non_field_errors': errors}
        body = {
            'success': False,
            'message': _first_message(errors) or 'Validation failed',
            'errors': errors,
        }
    else:
        body = {
            'success': False,
            'message': _first_message(response.data.get('detail', response.data)
                                      if isinstance(response.data, dict) else response.data),
        }

    if response.status_code >= 500:
        logger.error("Request failed with %s: %s", response.status_code, body['message'])
    response.data = body
    return response
