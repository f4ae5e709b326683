from datetime import timedelta

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from algorithms.badges import badges_for_count


class BloodGroup(models.TextChoices):
    A_POS = 'A+', 'A+'
    A_NEG = 'A-', 'A-'
    B_POS = 'B+', 'B+'
    B_NEG = 'B-', 'B-'
    AB_POS = 'AB+', 'AB+'
    AB_NEG = 'AB-', 'AB-'
    O_POS = 'O+', 'O+'
    O_NEG = 'O-', 'O-'


class User(AbstractUser):
    ROLE_CHOICES = (
        ('donor', 'Donor'),
        ('receiver', 'Receiver'),
        ('admin', 'Admin'),
    )

    email = models.EmailField(unique=True)
    name = models.CharField(max_length=150, blank=True)
    phone = models.CharField(max_length=20, blank=True)
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default='donor')

    blood_group = models.CharField(max_length=3, choices=BloodGroup.choices, blank=True)
    age = models.PositiveIntegerField(
        null=True, blank=True,
        validators=[MinValueValidator(18), MaxValueValidator(65)]
    )

    # Geolocation (optional)
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)
    address = models.CharField(max_length=255, blank=True)

    # Donor status
    is_donor = models.BooleanField(default=True)
    is_available = models.BooleanField(default=True)
    donation_count = models.PositiveIntegerField(default=0)
    badges = models.JSONField(default=list, blank=True)
    last_donation = models.DateTimeField(null=True, blank=True)

    # Login lockout
    failed_attempts = models.PositiveIntegerField(default=0)
    is_locked = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['latitude', 'longitude'], name='user_coordinates_idx'),
            models.Index(fields=['blood_group', 'is_donor', 'is_available'], name='user_donor_lookup_idx'),
        ]

    def __str__(self):
        return f"{self.display_name} ({self.role})"

    @property
    def display_name(self):
        return self.name or self.get_full_name() or self.username

    @property
    def is_admin(self) -> bool:
        return self.role == 'admin' or self.is_staff or self.is_superuser

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def can_donate(self) -> bool:
        """Donors can donate again after the recovery period"""
        if not self.last_donation:
            return True
        recovery = timedelta(days=settings.DONATION_RECOVERY_DAYS)
        return timezone.now() - self.last_donation >= recovery

    def update_badges(self):
        self.badges = badges_for_count(self.donation_count)

    def record_donation(self):
        """Count one more completed donation and recompute badges (caller saves)"""
        self.donation_count += 1
        self.last_donation = timezone.now()
        self.update_badges()
