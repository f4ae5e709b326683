# notifications/dispatch.py
"""
Push events to connected clients through the channel layer.

Every user has a private group (user_<id>) that their sockets join on
request, and every socket is in the broadcast group. Pushes are
fire-and-forget: a failure is logged and never reaches the HTTP caller,
and nothing is stored for users who are offline.
"""
import json
import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from rest_framework.renderers import JSONRenderer

from blood_requests.serializers import (
    BloodRequestSerializer,
    BloodRequestSummarySerializer,
    DonorResponseSerializer,
)
from .registry import sessions
from .serializers import NotificationSerializer

logger = logging.getLogger(__name__)

BROADCAST_GROUP = 'broadcast'

# Event names as seen by clients
NEW_BLOOD_REQUEST = 'newBloodRequest'
NEARBY_BLOOD_REQUEST = 'nearbyBloodRequest'
NEW_RESPONSE = 'newResponse'
NEW_NOTIFICATION = 'newNotification'
BLOOD_REQUEST_UPDATED = 'bloodRequestUpdated'
DONATION_CONFIRMED = 'donationConfirmed'


def user_group(user_id):
    return f'user_{user_id}'


def _json_safe(payload):
    # Serializer output may hold Decimals, dates and ReturnDicts
    return json.loads(JSONRenderer().render(payload))


def _send(group, event, payload):
    layer = get_channel_layer()
    if layer is None:
        logger.warning("No channel layer configured, dropping %s for %s", event, group)
        return False

    try:
        async_to_sync(layer.group_send)(group, {
            'type': 'push.event',
            'event': event,
            'payload': _json_safe(payload),
        })
    except Exception:
        logger.exception("Failed to push %s to %s", event, group)
        return False

    logger.debug("Pushed %s to %s", event, group)
    return True


def broadcast(event, payload):
    return _send(BROADCAST_GROUP, event, payload)


def send_to_user(user_id, event, payload):
    if not sessions.is_connected(user_id):
        logger.debug("User %s has no session on this process for %s", user_id, event)
    return _send(user_group(user_id), event, payload)


# =========================
# Blood request events
# =========================

def notify_new_request(blood_request):
    return broadcast(NEW_BLOOD_REQUEST, BloodRequestSerializer(blood_request).data)


def notify_nearby_donors(blood_request, matches):
    """
    Push the request to every matched donor with their distance.

    Args:
        matches: [(donor, distance_km)] as returned by the geo query
    """
    request_data = BloodRequestSerializer(blood_request).data
    sent = 0
    online = 0

    for donor, distance in matches:
        if sessions.is_connected(donor.pk):
            online += 1
        if send_to_user(donor.pk, NEARBY_BLOOD_REQUEST, {
            'request': request_data,
            'distance': round(distance, 2),
        }):
            sent += 1

    logger.info(
        "Request #%s: %s/%s nearby push(es) sent, %s donor(s) online here",
        blood_request.pk, sent, len(matches), online
    )
    return sent


def notify_new_response(blood_request, response, notification):
    requester_id = blood_request.requester_id
    send_to_user(requester_id, NEW_RESPONSE, {
        'requestId': blood_request.pk,
        'response': DonorResponseSerializer(response).data,
    })
    send_to_user(requester_id, NEW_NOTIFICATION, NotificationSerializer(notification).data)


def notify_request_updated(blood_request):
    return broadcast(BLOOD_REQUEST_UPDATED, BloodRequestSerializer(blood_request).data)


def notify_donation_confirmed(blood_request, donor):
    return send_to_user(donor.pk, DONATION_CONFIRMED, {
        'request': BloodRequestSummarySerializer(blood_request).data,
        'newBadges': donor.badges,
    })
