# notifications/consumers.py
import logging

from channels.generic.websocket import AsyncJsonWebsocketConsumer

from .dispatch import BROADCAST_GROUP, user_group
from .registry import sessions

logger = logging.getLogger(__name__)

# Close code sent to sockets without a valid access token
UNAUTHENTICATED = 4401


class NotificationConsumer(AsyncJsonWebsocketConsumer):
    """
    Push channel for one client session.

    Every session receives broadcasts. Private events arrive only after the
    client sends {"action": "join"}; {"action": "leave"} stops them again.
    """

    user_id = None
    joined = False

    async def connect(self):
        user = self.scope.get('user')
        if user is None or not user.is_authenticated:
            # Accept first so the close code reaches the client
            await self.accept()
            await self.close(code=UNAUTHENTICATED)
            return

        self.user_id = user.pk
        await self.channel_layer.group_add(BROADCAST_GROUP, self.channel_name)
        await self.accept()
        sessions.register(self.user_id, self.channel_name)
        logger.info("User %s connected (%s)", self.user_id, self.channel_name)

    async def disconnect(self, code):
        if self.user_id is None:
            return

        await self.channel_layer.group_discard(BROADCAST_GROUP, self.channel_name)
        if self.joined:
            await self.channel_layer.group_discard(user_group(self.user_id), self.channel_name)
        sessions.unregister(self.user_id, self.channel_name)
        logger.info("User %s disconnected (code %s)", self.user_id, code)

    async def receive_json(self, content, **kwargs):
        action = content.get('action') if isinstance(content, dict) else None

        if action == 'join':
            await self._join(content.get('userId'))
        elif action == 'leave':
            await self._leave()
        else:
            await self._error('Unknown action')

    async def _join(self, requested_id):
        if requested_id is not None and str(requested_id) != str(self.user_id):
            logger.warning("User %s tried to join the channel of user %s", self.user_id, requested_id)
            await self._error("Cannot join another user's channel")
            return

        if not self.joined:
            await self.channel_layer.group_add(user_group(self.user_id), self.channel_name)
            self.joined = True
        await self.send_json({'event': 'joined', 'payload': {'userId': self.user_id}})

    async def _leave(self):
        if self.joined:
            await self.channel_layer.group_discard(user_group(self.user_id), self.channel_name)
            self.joined = False
        await self.send_json({'event': 'left', 'payload': {'userId': self.user_id}})

    async def _error(self, message):
        await self.send_json({'event': 'error', 'payload': {'message': message}})

    # Handler for group messages of type "push.event"
    async def push_event(self, message):
        await self.send_json({'event': message['event'], 'payload': message['payload']})
