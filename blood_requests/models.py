import logging

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Sum

from accounts.models import BloodGroup

logger = logging.getLogger(__name__)


class BloodRequest(models.Model):
    class Urgency(models.TextChoices):
        NORMAL = 'normal', 'Normal'
        URGENT = 'urgent', 'Urgent'
        CRITICAL = 'critical', 'Critical'

    class Status(models.TextChoices):
        OPEN = 'open', 'Open'
        FULFILLED = 'fulfilled', 'Fulfilled'
        CANCELLED = 'cancelled', 'Cancelled'

    requester = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='blood_requests'
    )

    patient_name = models.CharField(max_length=100, default='Anonymous')
    blood_group = models.CharField(max_length=3, choices=BloodGroup.choices)
    urgency = models.CharField(max_length=10, choices=Urgency.choices, default=Urgency.NORMAL)
    contact = models.CharField(max_length=100)
    units_needed = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    notes = models.TextField(blank=True)

    # Location of the patient / hospital
    latitude = models.FloatField()
    longitude = models.FloatField()
    address = models.CharField(max_length=255)

    status = models.CharField(max_length=10, choices=Status.choices, default=Status.OPEN)
    is_emergency = models.BooleanField(default=False)
    fulfilled_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-is_emergency', '-created_at']
        indexes = [
            models.Index(fields=['status', 'urgency'], name='request_status_urgency_idx'),
            models.Index(fields=['latitude', 'longitude'], name='request_coordinates_idx'),
            models.Index(fields=['-created_at'], name='request_created_idx'),
        ]

    def __str__(self):
        return f"{self.patient_name} - {self.blood_group} ({self.status})"

    def save(self, *args, **kwargs):
        # Critical requests are always flagged as emergencies
        if self.urgency == self.Urgency.CRITICAL:
            self.is_emergency = True
        super().save(*args, **kwargs)

    @property
    def is_open(self) -> bool:
        return self.status == self.Status.OPEN

    @property
    def units_fulfilled(self) -> int:
        return self.fulfillments.aggregate(total=Sum('units_provided'))['total'] or 0


# Legacy labels accepted at the API boundary
STATUS_ALIASES = {
    'active': BloodRequest.Status.OPEN,
    'completed': BloodRequest.Status.FULFILLED,
}


def normalize_status(value):
    """
    Map a client-supplied status to the canonical enum.

    Returns None for anything that is not a known status or alias.
    """
    if value is None:
        return None

    key = str(value).strip().lower()
    if key in BloodRequest.Status.values:
        return key

    canonical = STATUS_ALIASES.get(key)
    if canonical is not None:
        logger.warning("Legacy status label %r normalised to %r", value, canonical.value)
        return canonical.value
    return None


class DonorResponse(models.Model):
    """A donor's answer to a blood request. Never edited once written."""
    blood_request = models.ForeignKey(
        BloodRequest,
        on_delete=models.CASCADE,
        related_name='responses'
    )
    donor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='blood_request_responses'
    )

    message = models.TextField(blank=True)
    can_donate = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'id']
        constraints = [
            models.UniqueConstraint(fields=['blood_request', 'donor'], name='unique_response_per_donor'),
        ]

    def __str__(self):
        return f"{self.donor} responded to request #{self.blood_request_id}"


class Fulfillment(models.Model):
    blood_request = models.ForeignKey(
        BloodRequest,
        on_delete=models.CASCADE,
        related_name='fulfillments'
    )
    donor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='fulfillments'
    )

    units_provided = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"{self.donor} gave {self.units_provided} unit(s) to request #{self.blood_request_id}"
