# blood_requests/tasks.py
"""
Celery tasks for pushing new blood requests to donors
"""
import logging

from celery import shared_task

from notifications import dispatch
from .matching import donors_for_request
from .models import BloodRequest

logger = logging.getLogger(__name__)


@shared_task
def fan_out_blood_request(blood_request_id):
    """
    Broadcast a new request and push it to matching donors nearby.
    Delivery is best effort: nothing is persisted for these pushes.
    """
    try:
        blood_request = BloodRequest.objects.select_related('requester').get(pk=blood_request_id)
    except BloodRequest.DoesNotExist:
        logger.warning("Fan-out skipped: blood request #%s not found", blood_request_id)
        return 0

    if not blood_request.is_open:
        logger.info("Fan-out skipped: blood request #%s is %s", blood_request.pk, blood_request.status)
        return 0

    dispatch.notify_new_request(blood_request)

    matches = donors_for_request(blood_request)
    dispatch.notify_nearby_donors(blood_request, matches)

    logger.info(
        "Blood request #%s pushed to %s nearby %s donor(s)",
        blood_request.pk, len(matches), blood_request.blood_group
    )
    return len(matches)
