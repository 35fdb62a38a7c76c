"""
Database models for the MedBook backend.

These models capture the core concepts of the system: users with a
role, diagnostic centers and the tests they offer, appointments booked
by patients and the reviews patients leave once an appointment has been
completed.  A center's ``rating`` and ``total_reviews`` are derived from
its reviews and are only ever written by
:func:`core.services.ratings.recompute_center_rating`.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q


class User(AbstractUser):
    """Custom user model with a role and one-time-password state.

    Users log in with their email address.  ``username`` is kept from
    :class:`AbstractUser` and mirrors the email for accounts created
    through the API.  The OTP fields hold a hashed code, its expiry and
    the purpose it was issued for; they are cleared once a code has been
    verified.
    """
    ROLE_PATIENT = 'patient'
    ROLE_CENTER_ADMIN = 'diagnostic_center_admin'
    ROLE_ADMIN = 'admin'
    ROLE_CHOICES = [
        (ROLE_PATIENT, 'Patient'),
        (ROLE_CENTER_ADMIN, 'Diagnostic center administrator'),
        (ROLE_ADMIN, 'Administrator'),
    ]

    OTP_REGISTRATION = 'registration'
    OTP_PASSWORD_RESET = 'password_reset'
    OTP_PURPOSE_CHOICES = [
        (OTP_REGISTRATION, 'Registration'),
        (OTP_PASSWORD_RESET, 'Password reset'),
    ]

    email = models.EmailField(unique=True)
    name = models.CharField(max_length=255, blank=True)
    phone = models.CharField(max_length=32, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)
    role = models.CharField(max_length=32, choices=ROLE_CHOICES, default=ROLE_PATIENT, db_index=True)
    is_email_verified = models.BooleanField(default=False)

    otp_code = models.CharField(max_length=128, blank=True)
    otp_expires_at = models.DateTimeField(null=True, blank=True)
    otp_purpose = models.CharField(max_length=32, choices=OTP_PURPOSE_CHOICES, blank=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username']

    def __str__(self) -> str:
        return f"{self.email} ({self.role})"

    @property
    def display_name(self) -> str:
        return self.name or self.get_full_name() or self.email


class DiagnosticCenter(models.Model):
    """An organisation offering diagnostic tests.

    ``admin`` is the user with role ``diagnostic_center_admin`` who
    manages the center; center-scoped endpoints resolve the caller's
    center through this relation.
    """
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    # {"street", "city", "state", "zipCode", "country"}
    address = models.JSONField(default=dict, blank=True)
    phone = models.CharField(max_length=32)
    email = models.EmailField()
    operating_hours = models.JSONField(default=dict, blank=True)
    services = models.JSONField(default=list, blank=True)
    admin = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='managed_centers'
    )
    is_active = models.BooleanField(default=True, db_index=True)
    rating = models.FloatField(
        default=0, validators=[MinValueValidator(0), MaxValueValidator(5)], editable=False
    )
    total_reviews = models.PositiveIntegerField(default=0, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return self.name


class DiagnosticTest(models.Model):
    """A test offered by exactly one center.  Deleting marks it inactive."""
    center = models.ForeignKey(DiagnosticCenter, on_delete=models.CASCADE, related_name='tests')
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=100)
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    duration = models.PositiveIntegerField(help_text="Duration in minutes")
    preparation_instructions = models.TextField(blank=True)
    requirements = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['center', 'name'],
                condition=Q(is_active=True),
                name='unique_active_test_name_per_center',
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name} @ {self.center_id}"


class Appointment(models.Model):
    """A booking of one test at one center by one patient.

    ``total_amount`` is copied from the test price at booking time and is
    never recalculated afterwards.
    """
    STATUS_SCHEDULED = 'scheduled'
    STATUS_CONFIRMED = 'confirmed'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (STATUS_SCHEDULED, 'Scheduled'),
        (STATUS_CONFIRMED, 'Confirmed'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    patient = models.ForeignKey(User, on_delete=models.CASCADE, related_name='appointments')
    center = models.ForeignKey(DiagnosticCenter, on_delete=models.CASCADE, related_name='appointments')
    test = models.ForeignKey(DiagnosticTest, on_delete=models.PROTECT, related_name='appointments')
    appointment_date = models.DateField()
    appointment_time = models.TimeField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_SCHEDULED, db_index=True)
    total_amount = models.DecimalField(max_digits=10, decimal_places=2)
    notes = models.TextField(blank=True)
    cancellation_reason = models.TextField(blank=True)
    report_url = models.URLField(max_length=1024, blank=True)
    result_summary = models.TextField(blank=True)
    result_uploaded_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['patient', 'appointment_date'], name='core_appoin_patient_5c1f2e_idx'),
            models.Index(fields=['center', 'status', 'appointment_date'], name='core_appoin_center__8a7d41_idx'),
        ]

    def __str__(self) -> str:
        return f"Appointment #{self.id} ({self.status})"


class AppointmentTransition(models.Model):
    """Records a status transition for an appointment."""
    appointment = models.ForeignKey(Appointment, related_name='transitions', on_delete=models.CASCADE)
    from_status = models.CharField(max_length=20)
    to_status = models.CharField(max_length=20)
    operator = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='appointment_transitions'
    )
    reason = models.CharField(max_length=255, blank=True)
    timestamp = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.appointment_id}: {self.from_status} → {self.to_status}"


class Review(models.Model):
    """A patient's rating of a completed appointment.

    At most one review exists per (user, appointment) pair.
    """
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='reviews')
    appointment = models.ForeignKey(Appointment, on_delete=models.CASCADE, related_name='reviews')
    center = models.ForeignKey(DiagnosticCenter, on_delete=models.CASCADE, related_name='reviews')
    rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    comment = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['user', 'appointment'], name='one_review_per_user_appointment'),
        ]
        indexes = [
            models.Index(fields=['center', 'created_at'], name='core_review_center__3e9b07_idx'),
        ]

    def __str__(self) -> str:
        return f"Review {self.rating}/5 by {self.user_id} for {self.center_id}"
