"""
Appointment scheduling.

Bookings are placed against a doctor's (date, time slot).  A slot holds
at most one appointment that is not cancelled, and every booking gets
the next queue number of its doctor's day.  Queue numbers are never
reused: cancelled appointments keep theirs, so the maximum is taken
over all statuses.

Every read-check-write runs inside one transaction with the doctor row
locked, and the database constraints on ``Appointment`` reject whatever
slips past the checks.
"""
import logging
from typing import Optional

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Max

from core.exceptions import Conflict, NotFound, ValidationError
from core.models import Appointment, Doctor
from core.services.audit import log_action

logger = logging.getLogger(__name__)

User = get_user_model()

SLOT_TAKEN = 'Selected time slot is already booked'

UPDATABLE_FIELDS = (
    'doctor_id',
    'user_id',
    'patient_name',
    'contact_number',
    'reason',
    'appointment_type',
    'date',
    'time_slot',
    'status',
)


def _ordered(qs):
    return qs.select_related('doctor').order_by('-date', 'time_slot', 'id')


def list_appointments(*, status: Optional[str]=None, doctor_id: Optional[int]=None, date=None):
    qs = Appointment.objects.all()
    if status:
        qs = qs.filter(status=status)
    if doctor_id:
        qs = qs.filter(doctor_id=doctor_id)
    if date:
        qs = qs.filter(date=date)
    return list(_ordered(qs))


def find_appointment(appointment_id: int) -> Appointment:
    appointment = Appointment.objects.select_related('doctor').filter(pk=appointment_id).first()
    if appointment is None:
        raise NotFound('Appointment not found')
    return appointment


def list_my_appointments(user_id: int, *, status: Optional[str]=None):
    qs = Appointment.objects.filter(user_id=user_id)
    if status:
        qs = qs.filter(status=status)
    return list(_ordered(qs))


def next_queue_number(doctor_id: int, date) -> int:
    current = Appointment.objects.filter(doctor_id=doctor_id, date=date).aggregate(m=Max('queue_number'))['m']
    return (current or 0) + 1


def create_appointment(
    *,
    doctor_id: int,
    patient_name: str,
    contact_number: str,
    appointment_type: str,
    date,
    time_slot: str,
    user_id: Optional[int]=None,
    reason: Optional[str]=None,
    status: Optional[str]=None,
) -> Appointment:
    """Book a slot and assign the next queue number for the doctor's day."""
    with transaction.atomic():
        # Locking the doctor row serialises bookings for that doctor.
        doctor = Doctor.objects.select_for_update().filter(pk=doctor_id).first()
        if doctor is None:
            raise NotFound('Doctor not found')
        if user_id and not User.objects.filter(pk=user_id).exists():
            raise NotFound('User not found')

        taken = (
            Appointment.objects.filter(doctor_id=doctor_id, date=date, time_slot=time_slot)
            .exclude(status=Appointment.STATUS_CANCELLED)
            .exists()
        )
        if taken:
            logger.warning('Slot %s %s of doctor %s already booked', date, time_slot, doctor_id)
            raise Conflict(SLOT_TAKEN)

        queue_number = next_queue_number(doctor_id, date)
        try:
            with transaction.atomic():
                appointment = Appointment.objects.create(
                    doctor=doctor,
                    user_id=user_id or None,
                    patient_name=patient_name,
                    contact_number=contact_number,
                    reason=reason,
                    appointment_type=appointment_type,
                    date=date,
                    time_slot=time_slot,
                    queue_number=queue_number,
                    status=status or Appointment.STATUS_UPCOMING,
                )
        except IntegrityError as exc:
            logger.warning('Concurrent booking rejected for doctor %s on %s %s', doctor_id, date, time_slot)
            raise Conflict(SLOT_TAKEN) from exc

        log_action(
            user_id=user_id, action='appointment_create', object_type='appointment',
            object_id=appointment.id, detail={'doctorId': doctor_id, 'queueNumber': queue_number},
        )

    logger.info('Booked appointment %s: doctor %s, %s %s, queue #%s',
                appointment.id, doctor_id, date, time_slot, queue_number)
    return appointment


def cancel_my_appointment(appointment_id: int, user_id: int) -> Appointment:
    """Cancel the caller's own upcoming appointment.

    A missing appointment and someone else's appointment raise the same
    ``NotFound`` so that ids of other patients' bookings are not revealed.
    """
    with transaction.atomic():
        appointment = (
            Appointment.objects.select_for_update().select_related('doctor')
            .filter(pk=appointment_id).first()
        )
        if appointment is None or appointment.user_id != user_id:
            raise NotFound('Appointment not found')
        if appointment.status != Appointment.STATUS_UPCOMING:
            raise ValidationError('Only upcoming appointments can be cancelled')

        appointment.status = Appointment.STATUS_CANCELLED
        appointment.save(update_fields=['status', 'updated_at'])
        log_action(user_id=user_id, action='appointment_cancel', object_type='appointment', object_id=appointment.id)

    logger.info('Appointment %s cancelled by user %s', appointment.id, user_id)
    return appointment


def update_appointment(appointment_id: int, changes: dict, actor=None) -> Appointment:
    """Administrative patch of any field, status included, without transition rules."""
    with transaction.atomic():
        appointment = Appointment.objects.select_for_update().filter(pk=appointment_id).first()
        if appointment is None:
            raise NotFound('Appointment not found')
        if 'doctor_id' in changes and not Doctor.objects.filter(pk=changes['doctor_id']).exists():
            raise NotFound('Doctor not found')
        moved = any(f in changes and changes[f] != getattr(appointment, f) for f in ('doctor_id', 'date'))
        if changes.get('user_id') and not User.objects.filter(pk=changes['user_id']).exists():
            raise NotFound('User not found')

        fields = [f for f in UPDATABLE_FIELDS if f in changes]
        for field in fields:
            setattr(appointment, field, changes[field])
        if moved:
            # A booking moved to another doctor or day joins the end of that day's queue.
            Doctor.objects.select_for_update().filter(pk=appointment.doctor_id).first()
            appointment.queue_number = next_queue_number(appointment.doctor_id, appointment.date)
            fields.append('queue_number')
        try:
            with transaction.atomic():
                appointment.save(update_fields=fields + ['updated_at'])
        except IntegrityError as exc:
            raise Conflict('Appointment conflicts with an existing booking') from exc
        log_action(user=actor, action='appointment_update', object_type='appointment',
                   object_id=appointment.id, detail={'fields': fields})

    logger.info('Appointment %s updated: %s', appointment_id, ', '.join(fields) or 'no changes')
    return find_appointment(appointment_id)


def remove_appointment(appointment_id: int, actor=None) -> None:
    with transaction.atomic():
        appointment = Appointment.objects.select_for_update().filter(pk=appointment_id).first()
        if appointment is None:
            raise NotFound('Appointment not found')
        appointment.delete()
        log_action(user=actor, action='appointment_remove', object_type='appointment', object_id=appointment_id)
    logger.info('Appointment %s removed', appointment_id)
