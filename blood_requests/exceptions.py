from rest_framework import status
from rest_framework.exceptions import APIException


class InvalidState(APIException):
    """Operation not allowed in the request's current lifecycle state"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Cannot respond to inactive blood request'
    default_code = 'invalid_state'


class SelfResponse(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'You cannot respond to your own blood request.'
    default_code = 'self_response'


class DuplicateResponse(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'You have already responded to this request'
    default_code = 'duplicate_response'
