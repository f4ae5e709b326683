"""
Resolve the JWT access token passed as ?token= on websocket connections
"""
import logging
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken

logger = logging.getLogger(__name__)


@database_sync_to_async
def get_user_for_token(raw_token):
    try:
        token = AccessToken(raw_token)
    except TokenError as exc:
        logger.info("Rejected websocket token: %s", exc)
        return AnonymousUser()

    User = get_user_model()
    try:
        user = User.objects.get(**{api_settings.USER_ID_FIELD: token[api_settings.USER_ID_CLAIM]})
    except (KeyError, User.DoesNotExist):
        return AnonymousUser()

    if not user.is_active or user.is_locked:
        return AnonymousUser()
    return user


class JWTAuthMiddleware(BaseMiddleware):

    async def __call__(self, scope, receive, send):
        query = parse_qs(scope.get('query_string', b'').decode())
        raw_token = (query.get('token') or [None])[0]

        scope = dict(scope)
        scope['user'] = await get_user_for_token(raw_token) if raw_token else AnonymousUser()
        return await super().__call__(scope, receive, send)
