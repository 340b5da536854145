"""
Database models for the hospital backend.

These models capture the accounts and roles of the system, the doctor
directory, appointment bookings with their per-doctor daily queue and
the laboratory request workflow.  Cross-row invariants (one active
booking per slot, unique queue numbers, unique lab codes) are declared
as database constraints so that concurrent requests cannot both
succeed.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.db.models import Q


# Fixed specialization list shared with the client.  ``0`` marks a doctor
# row that was provisioned automatically and still needs an assignment.
SPECIALIZATIONS = [
    (1, 'Cardiology'),
    (2, 'Dermatology'),
    (3, 'Orthopedics'),
    (4, 'Pediatrics'),
    (5, 'Gynecology & Obstetrics'),
    (6, 'General Surgery'),
    (7, 'Neurology'),
    (8, 'Psychiatry'),
    (9, 'Endocrinology'),
    (10, 'General Medicine'),
]
UNASSIGNED_SPECIALIZATION = 0


class User(AbstractUser):
    """Account with a role, an approval status and contact details.

    ``USER`` is the patient role.  Self-registered accounts start as
    ``PENDING`` and unconfirmed until an administrator confirms them;
    only confirmed ``ACTIVE`` accounts may log in.  The e-mail address
    doubles as the username.
    """
    ROLE_USER = 'USER'
    ROLE_DOCTOR = 'DOCTOR'
    ROLE_ADMIN = 'ADMIN'
    ROLE_STAFF = 'STAFF'
    ROLE_NURSE = 'NURSE'
    ROLE_CHOICES = [
        (ROLE_USER, 'Patient'),
        (ROLE_DOCTOR, 'Doctor'),
        (ROLE_ADMIN, 'Administrator'),
        (ROLE_STAFF, 'Staff'),
        (ROLE_NURSE, 'Nurse'),
    ]

    STATUS_PENDING = 'PENDING'
    STATUS_ACTIVE = 'ACTIVE'
    STATUS_SUSPENDED = 'SUSPENDED'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_ACTIVE, 'Active'),
        (STATUS_SUSPENDED, 'Suspended'),
    ]

    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=20, unique=True, null=True, blank=True)
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_USER, db_index=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING)
    is_confirmed = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.email

    def __str__(self) -> str:
        return f"{self.email} ({self.role})"


class Doctor(models.Model):
    """Public profile of a doctor, linked one-to-one with a DOCTOR account."""
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='doctor_profile')
    full_name = models.CharField(max_length=150)
    slmc_number = models.CharField(max_length=50, unique=True)
    specialization_id = models.PositiveIntegerField(default=UNASSIGNED_SPECIALIZATION)
    phone = models.CharField(max_length=20, blank=True, null=True)
    email = models.EmailField(max_length=100, blank=True, null=True)
    description = models.TextField(blank=True, null=True)
    joined_date = models.DateField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"Dr. {self.full_name} ({self.slmc_number})"


class Appointment(models.Model):
    """A booking against a doctor's (date, time slot) with a daily queue number."""
    STATUS_UPCOMING = 'UPCOMING'
    STATUS_COMPLETED = 'COMPLETED'
    STATUS_CANCELLED = 'CANCELLED'
    STATUS_CHOICES = [
        (STATUS_UPCOMING, 'Upcoming'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name='appointments')
    user = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='appointments'
    )
    patient_name = models.CharField(max_length=150)
    contact_number = models.CharField(max_length=20)
    reason = models.TextField(blank=True, null=True)
    appointment_type = models.CharField(max_length=50)
    date = models.DateField()
    time_slot = models.CharField(max_length=10)
    queue_number = models.PositiveIntegerField()
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_UPCOMING, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['doctor', 'date', 'time_slot'],
                condition=~Q(status='CANCELLED'),
                name='uniq_active_appointment_slot',
            ),
            models.UniqueConstraint(
                fields=['doctor', 'date', 'queue_number'],
                name='uniq_appointment_queue_number',
            ),
        ]
        indexes = [
            models.Index(fields=['user', 'date'], name='core_appt_user_date_idx'),
        ]

    def __str__(self) -> str:
        return f"#{self.queue_number} {self.patient_name} @ {self.date} {self.time_slot}"


class LabRequest(models.Model):
    """A doctor's order for one or more laboratory tests."""
    STATUS_PENDING = 'PENDING'
    STATUS_SAMPLE_COLLECTED = 'SAMPLE_COLLECTED'
    STATUS_COMPLETED = 'COMPLETED'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_SAMPLE_COLLECTED, 'Sample collected'),
        (STATUS_COMPLETED, 'Completed'),
    ]
    # Lab queue ordering: work still to do comes first.
    STATUS_PRIORITY = {
        STATUS_PENDING: 0,
        STATUS_SAMPLE_COLLECTED: 1,
        STATUS_COMPLETED: 2,
    }

    code = models.CharField(max_length=32, unique=True)
    doctor_user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='ordered_lab_requests')
    patient_user = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='lab_reports'
    )
    appointment = models.ForeignKey(
        Appointment, null=True, blank=True, on_delete=models.SET_NULL, related_name='lab_requests'
    )
    patient_name = models.CharField(max_length=150)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    sample_collected_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    technician_user = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='handled_lab_requests'
    )
    technician_name = models.CharField(max_length=150, null=True, blank=True)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=~Q(status='COMPLETED') | (Q(technician_name__isnull=False) & ~Q(technician_name='')),
                name='lab_completed_has_technician',
            ),
        ]
        indexes = [
            models.Index(fields=['doctor_user', 'created_at'], name='core_lab_doctor_created_idx'),
            models.Index(fields=['patient_user', 'status'], name='core_lab_patient_status_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.code} ({self.status})"


class LabRequestTest(models.Model):
    request = models.ForeignKey(LabRequest, on_delete=models.CASCADE, related_name='tests')
    test_name = models.CharField(max_length=150)
    result_value = models.TextField(null=True, blank=True)
    result_remarks = models.TextField(null=True, blank=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['request', 'test_name'], name='uniq_lab_request_test'),
        ]

    def __str__(self) -> str:
        return f"{self.request_id}:{self.test_name}"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.BigIntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='core_audit_action_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='core_audit_object_idx'),
        ]

    def __str__(self):
        return f"{self.action}:{self.user_id}@{self.created_at:%F %T}"
