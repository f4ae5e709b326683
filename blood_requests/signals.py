# blood_requests/signals.py
"""
Schedule the donor fan-out once a new blood request is committed
"""
import logging

from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import BloodRequest
from .tasks import fan_out_blood_request

logger = logging.getLogger(__name__)


def _schedule_fan_out(request_id):
    try:
        fan_out_blood_request.delay(request_id)
    except Exception:
        # The request is already stored; a broker outage only costs the push
        logger.exception("Could not schedule fan-out for blood request #%s", request_id)


@receiver(post_save, sender=BloodRequest)
def fan_out_new_request(sender, instance, created, **kwargs):
    """
    Push a newly created request to everyone and to nearby donors
    """
    if created and instance.is_open:
        transaction.on_commit(lambda: _schedule_fan_out(instance.pk))
