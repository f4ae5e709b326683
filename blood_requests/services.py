"""
Blood request lifecycle: create, respond, fulfill, status changes.

Every mutation runs in a single database transaction; push events are sent
only after the transaction has finished so a failed write never announces
anything.

    open ──(units reached | mark completed)──> fulfilled
    open ──(status update)──────────────────> cancelled
"""
import logging

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Sum
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from accounts.permissions import require_owner_or_admin
from notifications import dispatch
from notifications.models import Notification
from .exceptions import DuplicateResponse, InvalidState, SelfResponse
from .models import BloodRequest, DonorResponse, Fulfillment, normalize_status

logger = logging.getLogger(__name__)


def _locked_request(request_id):
    try:
        return (
            BloodRequest.objects
            .select_for_update()
            .get(pk=request_id)
        )
    except (BloodRequest.DoesNotExist, ValueError, TypeError):
        # Malformed ids count as unknown
        raise NotFound('Blood request not found')


def create_blood_request(requester, data):
    """
    Persist a new open request for `requester`.

    `data` is the validated payload: blood_group, urgency, contact,
    latitude, longitude, address, units_needed, patient_name, notes.
    """
    blood_request = BloodRequest.objects.create(requester=requester, **data)
    logger.info(
        "Blood request #%s created by user %s (%s, %s unit(s), %s)",
        blood_request.pk, requester.pk, blood_request.blood_group,
        blood_request.units_needed, blood_request.urgency
    )
    return blood_request


def edit_blood_request(request_id, actor, changes):
    """
    Apply owner edits (model field names) to an open request.
    The status is never changed here.
    """
    with transaction.atomic():
        blood_request = _locked_request(request_id)
        require_owner_or_admin(actor, blood_request.requester_id, action='update')

        if not blood_request.is_open:
            raise InvalidState('Only open requests can be edited')

        provided = blood_request.units_fulfilled
        if 'units_needed' in changes and changes['units_needed'] <= provided:
            raise ValidationError({
                'units': [f'Must be more than the {provided} unit(s) already provided.']
            })

        for field, value in changes.items():
            setattr(blood_request, field, value)
        blood_request.save()

    logger.info(
        "Request #%s edited by user %s (%s)",
        blood_request.pk, actor.pk, ', '.join(sorted(changes))
    )
    dispatch.notify_request_updated(blood_request)
    return blood_request


def delete_blood_request(request_id, actor):
    """
    Remove a request together with its responses and notifications.
    Requests with recorded donations are kept for the donors' history.
    """
    with transaction.atomic():
        blood_request = _locked_request(request_id)
        require_owner_or_admin(actor, blood_request.requester_id, action='delete')

        if blood_request.fulfillments.exists():
            raise InvalidState('Requests with recorded donations cannot be deleted, cancel them instead')

        request_pk = blood_request.pk
        blood_request.delete()

    logger.info("Request #%s deleted by user %s", request_pk, actor.pk)
    return request_pk


def respond_to_request(request_id, donor, message='', can_donate=True):
    """
    Record a donor's response and notify the requester.

    Raises:
        NotFound: unknown request
        SelfResponse: donor is the requester
        InvalidState: request is no longer open
        DuplicateResponse: donor already responded
    """
    with transaction.atomic():
        blood_request = _locked_request(request_id)

        if blood_request.requester_id == donor.pk:
            raise SelfResponse()

        if not blood_request.is_open:
            raise InvalidState()

        if blood_request.responses.filter(donor=donor).exists():
            raise DuplicateResponse()

        try:
            with transaction.atomic():
                response = DonorResponse.objects.create(
                    blood_request=blood_request,
                    donor=donor,
                    message=message or '',
                    can_donate=can_donate,
                )
        except IntegrityError:
            # Concurrent insert won the unique constraint
            raise DuplicateResponse()

        notification = Notification.objects.create(
            requester_id=blood_request.requester_id,
            responder=donor,
            blood_request=blood_request,
        )

    logger.info(
        "Donor %s responded to request #%s (can_donate=%s)",
        donor.pk, blood_request.pk, can_donate
    )
    dispatch.notify_new_response(blood_request, response, notification)
    return blood_request, response


def fulfill_request(request_id, actor, donor_id, units_provided):
    """
    Credit `donor_id` with `units_provided` units on an open request.

    The donor's donation count and badges, the fulfillment row and the
    request status are written in one transaction.
    """
    User = get_user_model()

    with transaction.atomic():
        blood_request = _locked_request(request_id)
        require_owner_or_admin(actor, blood_request.requester_id, action='fulfill')

        if not blood_request.is_open:
            raise InvalidState('This request has already been fulfilled or cancelled')

        try:
            donor = User.objects.select_for_update().get(pk=donor_id)
        except (User.DoesNotExist, ValueError, TypeError):
            raise NotFound('Donor not found')

        Fulfillment.objects.create(
            blood_request=blood_request,
            donor=donor,
            units_provided=units_provided,
        )

        donor.record_donation()
        donor.save(update_fields=['donation_count', 'last_donation', 'badges', 'updated_at'])

        total_units = blood_request.fulfillments.aggregate(total=Sum('units_provided'))['total'] or 0
        if total_units >= blood_request.units_needed:
            blood_request.status = BloodRequest.Status.FULFILLED
            blood_request.fulfilled_at = timezone.now()
        blood_request.save()

    logger.info(
        "Request #%s: donor %s provided %s unit(s), %s/%s fulfilled, status %s",
        blood_request.pk, donor.pk, units_provided, total_units,
        blood_request.units_needed, blood_request.status
    )
    dispatch.notify_request_updated(blood_request)
    dispatch.notify_donation_confirmed(blood_request, donor)
    return blood_request, donor


def update_status(request_id, actor, new_status):
    """
    Set the status directly. Only the requester or an admin may do this;
    the value must be (or normalise to) a canonical status.
    """
    status = normalize_status(new_status)
    if status is None:
        raise ValidationError({'status': [f'"{new_status}" is not a valid status.']})

    with transaction.atomic():
        blood_request = _locked_request(request_id)
        require_owner_or_admin(actor, blood_request.requester_id, action='update')

        previous = blood_request.status
        blood_request.status = status
        if status == BloodRequest.Status.FULFILLED and not blood_request.fulfilled_at:
            blood_request.fulfilled_at = timezone.now()
        blood_request.save()

    logger.info("Request #%s status %s -> %s by user %s", blood_request.pk, previous, status, actor.pk)
    dispatch.notify_request_updated(blood_request)
    return blood_request


def mark_completed(request_id, actor):
    """Requester closes an open request as fulfilled regardless of units"""
    with transaction.atomic():
        blood_request = _locked_request(request_id)
        require_owner_or_admin(actor, blood_request.requester_id, action='complete')

        if not blood_request.is_open:
            raise InvalidState('Only open requests can be marked as completed')

        blood_request.status = BloodRequest.Status.FULFILLED
        blood_request.fulfilled_at = timezone.now()
        blood_request.save()

    logger.info("Request #%s marked as completed by user %s", blood_request.pk, actor.pk)
    dispatch.notify_request_updated(blood_request)
    return blood_request
