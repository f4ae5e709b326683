"""
Process-scoped record of which users have an open websocket session.

Each server process only sees its own connections, so lookups answer
"connected to this process", which is what the dispatcher logs. Delivery
itself always goes through the channel layer groups and does not depend on
this registry.
"""
import logging
import threading
from collections import defaultdict

logger = logging.getLogger(__name__)


class SessionRegistry:

    def __init__(self):
        self._lock = threading.Lock()
        self._channels = defaultdict(set)

    def register(self, user_id, channel_name):
        with self._lock:
            self._channels[user_id].add(channel_name)
            count = len(self._channels[user_id])
        logger.debug("Session %s opened for user %s (%s open)", channel_name, user_id, count)

    def unregister(self, user_id, channel_name):
        with self._lock:
            channels = self._channels.get(user_id)
            if not channels:
                return
            channels.discard(channel_name)
            if not channels:
                del self._channels[user_id]
        logger.debug("Session %s closed for user %s", channel_name, user_id)

    def is_connected(self, user_id) -> bool:
        with self._lock:
            return bool(self._channels.get(user_id))

    def channels_for(self, user_id):
        with self._lock:
            return frozenset(self._channels.get(user_id, ()))

    def connected_users(self):
        with self._lock:
            return frozenset(self._channels)

    def clear(self):
        with self._lock:
            self._channels.clear()


sessions = SessionRegistry()
