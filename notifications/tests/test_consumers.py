from types import SimpleNamespace

from channels.layers import get_channel_layer
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator
from django.contrib.auth.models import AnonymousUser
from django.test import TestCase, override_settings

from accounts.serializers import get_tokens_for_user
from blood_requests.tests.utils import make_user
from notifications.consumers import UNAUTHENTICATED, NotificationConsumer
from notifications.dispatch import BROADCAST_GROUP, user_group
from notifications.middleware import JWTAuthMiddleware
from notifications.registry import sessions
from notifications.routing import websocket_urlpatterns

IN_MEMORY_LAYER = {'default': {'BACKEND': 'channels.layers.InMemoryChannelLayer'}}


@override_settings(CHANNEL_LAYERS=IN_MEMORY_LAYER)
class NotificationConsumerTests(TestCase):
    def setUp(self):
        sessions.clear()
        self.addCleanup(sessions.clear)
        self.user = SimpleNamespace(pk=5, is_authenticated=True)

    def communicator(self, user):
        communicator = WebsocketCommunicator(NotificationConsumer.as_asgi(), '/ws/notifications/')
        communicator.scope['user'] = user
        return communicator

    async def push(self, group, event, payload):
        await get_channel_layer().group_send(group, {'type': 'push.event', 'event': event, 'payload': payload})

    async def test_anonymous_socket_is_closed(self):
        communicator = self.communicator(AnonymousUser())
        await communicator.connect()

        output = await communicator.receive_output()
        self.assertEqual(output['type'], 'websocket.close')
        self.assertEqual(output['code'], UNAUTHENTICATED)
        self.assertEqual(sessions.connected_users(), frozenset())
        await communicator.disconnect()

    async def test_connect_registers_session_and_receives_broadcasts(self):
        communicator = self.communicator(self.user)
        connected, _ = await communicator.connect()
        self.assertTrue(connected)
        self.assertTrue(sessions.is_connected(5))

        await self.push(BROADCAST_GROUP, 'newBloodRequest', {'id': 1})
        self.assertEqual(
            await communicator.receive_json_from(),
            {'event': 'newBloodRequest', 'payload': {'id': 1}},
        )

        await communicator.disconnect()
        self.assertFalse(sessions.is_connected(5))

    async def test_private_events_require_join(self):
        communicator = self.communicator(self.user)
        await communicator.connect()

        await self.push(user_group(5), 'newResponse', {'requestId': 1})
        self.assertTrue(await communicator.receive_nothing())

        await communicator.send_json_to({'action': 'join'})
        self.assertEqual(
            await communicator.receive_json_from(),
            {'event': 'joined', 'payload': {'userId': 5}},
        )

        await self.push(user_group(5), 'newResponse', {'requestId': 1})
        message = await communicator.receive_json_from()
        self.assertEqual(message['event'], 'newResponse')

        await communicator.send_json_to({'action': 'leave'})
        self.assertEqual((await communicator.receive_json_from())['event'], 'left')

        await self.push(user_group(5), 'newResponse', {'requestId': 2})
        self.assertTrue(await communicator.receive_nothing())

        await communicator.disconnect()

    async def test_cannot_join_another_users_channel(self):
        communicator = self.communicator(self.user)
        await communicator.connect()

        await communicator.send_json_to({'action': 'join', 'userId': 6})
        reply = await communicator.receive_json_from()
        self.assertEqual(reply['event'], 'error')

        await self.push(user_group(6), 'newResponse', {'requestId': 1})
        self.assertTrue(await communicator.receive_nothing())

        await communicator.disconnect()

    async def test_unknown_action(self):
        communicator = self.communicator(self.user)
        await communicator.connect()

        await communicator.send_json_to({'action': 'dance'})
        reply = await communicator.receive_json_from()
        self.assertEqual(reply, {'event': 'error', 'payload': {'message': 'Unknown action'}})

        await communicator.disconnect()


@override_settings(CHANNEL_LAYERS=IN_MEMORY_LAYER)
class JWTAuthMiddlewareTests(TestCase):
    def setUp(self):
        sessions.clear()
        self.addCleanup(sessions.clear)
        self.user = make_user()
        self.token = get_tokens_for_user(self.user)['access']
        self.application = JWTAuthMiddleware(URLRouter(websocket_urlpatterns))

    async def test_valid_token_authenticates(self):
        communicator = WebsocketCommunicator(self.application, f'/ws/notifications/?token={self.token}')

        connected, _ = await communicator.connect()
        self.assertTrue(connected)

        await communicator.send_json_to({'action': 'join'})
        reply = await communicator.receive_json_from()
        self.assertEqual(reply['payload']['userId'], self.user.pk)

        await communicator.disconnect()

    async def test_invalid_token_is_rejected(self):
        communicator = WebsocketCommunicator(self.application, '/ws/notifications/?token=not-a-jwt')
        await communicator.connect()

        output = await communicator.receive_output()
        self.assertEqual(output['code'], UNAUTHENTICATED)
        await communicator.disconnect()

    async def test_missing_token_is_rejected(self):
        communicator = WebsocketCommunicator(self.application, '/ws/notifications/')
        await communicator.connect()

        output = await communicator.receive_output()
        self.assertEqual(output['code'], UNAUTHENTICATED)
        await communicator.disconnect()
