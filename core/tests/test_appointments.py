"""Booking rules: slot exclusivity, daily queue numbers and cancellation."""
import datetime

import pytest

from core.exceptions import Conflict, NotFound, ValidationError
from core.models import Appointment, AuditEvent
from core.services import appointments as svc

pytestmark = pytest.mark.django_db


def book(doctor, date, slot, user=None, **extra):
    return svc.create_appointment(
        doctor_id=doctor.id,
        patient_name=extra.pop('patient_name', 'Kamal Silva'),
        contact_number=extra.pop('contact_number', '0771234567'),
        appointment_type=extra.pop('appointment_type', 'Consultation'),
        date=date,
        time_slot=slot,
        user_id=user.id if user else None,
        **extra,
    )


def test_first_booking_gets_queue_one(doctor, patient, booking_date):
    a = book(doctor, booking_date, '09:00', patient)
    assert a.queue_number == 1
    assert a.status == Appointment.STATUS_UPCOMING
    assert a.doctor.full_name == doctor.full_name
    assert AuditEvent.objects.filter(action='appointment_create', object_id=a.id).exists()


def test_same_slot_twice_conflicts(doctor, make_user, booking_date):
    book(doctor, booking_date, '09:00', make_user())
    with pytest.raises(Conflict) as exc:
        book(doctor, booking_date, '09:00', make_user())
    assert str(exc.value.detail) == 'Selected time slot is already booked'
    assert Appointment.objects.count() == 1


def test_same_slot_other_doctor_or_day_is_free(make_doctor, booking_date):
    d1, d2 = make_doctor(), make_doctor()
    book(d1, booking_date, '09:00')
    assert book(d2, booking_date, '09:00').queue_number == 1
    assert book(d1, booking_date + datetime.timedelta(days=1), '09:00').queue_number == 1


def test_queue_numbers_increase_and_are_not_reused(doctor, make_user, booking_date):
    owner = make_user()
    numbers = [book(doctor, booking_date, slot, owner).queue_number for slot in ('09:00', '09:15')]
    assert numbers == [1, 2]

    second = Appointment.objects.get(queue_number=2)
    svc.cancel_my_appointment(second.id, owner.id)

    third = book(doctor, booking_date, '09:30', owner)
    assert third.queue_number == 3


def test_cancelled_slot_can_be_rebooked(doctor, make_user, booking_date):
    first_patient, second_patient = make_user(), make_user()
    first = book(doctor, booking_date, '09:00', first_patient)
    assert first.queue_number == 1

    cancelled = svc.cancel_my_appointment(first.id, first_patient.id)
    assert cancelled.status == Appointment.STATUS_CANCELLED

    again = book(doctor, booking_date, '09:00', second_patient)
    assert again.queue_number == 2
    assert again.status == Appointment.STATUS_UPCOMING


def test_unknown_doctor_or_user_is_not_found(doctor, booking_date):
    with pytest.raises(NotFound):
        svc.create_appointment(
            doctor_id=999999, patient_name='X', contact_number='0771234567',
            appointment_type='Consultation', date=booking_date, time_slot='09:00',
        )
    with pytest.raises(NotFound):
        svc.create_appointment(
            doctor_id=doctor.id, patient_name='X', contact_number='0771234567',
            appointment_type='Consultation', date=booking_date, time_slot='09:00', user_id=999999,
        )
    assert Appointment.objects.count() == 0


def test_cancel_someone_elses_booking_looks_missing(doctor, make_user, booking_date):
    owner, other = make_user(), make_user()
    a = book(doctor, booking_date, '10:00', owner)
    with pytest.raises(NotFound) as exc:
        svc.cancel_my_appointment(a.id, other.id)
    assert str(exc.value.detail) == 'Appointment not found'
    with pytest.raises(NotFound):
        svc.cancel_my_appointment(999999, owner.id)
    a.refresh_from_db()
    assert a.status == Appointment.STATUS_UPCOMING


@pytest.mark.parametrize('status', [Appointment.STATUS_CANCELLED, Appointment.STATUS_COMPLETED])
def test_only_upcoming_can_be_cancelled(doctor, patient, booking_date, status):
    a = book(doctor, booking_date, '10:00', patient, status=status)
    with pytest.raises(ValidationError) as exc:
        svc.cancel_my_appointment(a.id, patient.id)
    assert 'Only upcoming appointments can be cancelled' in str(exc.value.detail)


def test_list_ordering_and_filters(make_doctor, booking_date):
    d1, d2 = make_doctor(), make_doctor()
    later = booking_date + datetime.timedelta(days=1)
    a = book(d1, booking_date, '10:00')
    b = book(d1, booking_date, '09:00')
    c = book(d2, later, '11:00', status=Appointment.STATUS_COMPLETED)

    assert [x.id for x in svc.list_appointments()] == [c.id, b.id, a.id]
    assert [x.id for x in svc.list_appointments(doctor_id=d1.id)] == [b.id, a.id]
    assert [x.id for x in svc.list_appointments(status=Appointment.STATUS_COMPLETED)] == [c.id]
    assert [x.id for x in svc.list_appointments(date=booking_date)] == [b.id, a.id]


def test_list_mine_only_returns_own(doctor, make_user, booking_date):
    me, other = make_user(), make_user()
    mine = book(doctor, booking_date, '09:00', me)
    book(doctor, booking_date, '09:15', other)
    assert [x.id for x in svc.list_my_appointments(me.id)] == [mine.id]
    assert svc.list_my_appointments(me.id, status=Appointment.STATUS_CANCELLED) == []


def test_admin_update_may_reopen_cancelled(doctor, patient, booking_date):
    a = book(doctor, booking_date, '09:00', patient)
    svc.cancel_my_appointment(a.id, patient.id)
    updated = svc.update_appointment(a.id, {'status': Appointment.STATUS_UPCOMING, 'reason': 'Rescheduled'})
    assert updated.status == Appointment.STATUS_UPCOMING
    assert updated.reason == 'Rescheduled'


def test_admin_update_into_taken_slot_conflicts(doctor, booking_date):
    book(doctor, booking_date, '09:00')
    b = book(doctor, booking_date, '09:15')
    with pytest.raises(Conflict):
        svc.update_appointment(b.id, {'time_slot': '09:00'})
    b.refresh_from_db()
    assert b.time_slot == '09:15'


def test_find_and_remove(doctor, booking_date):
    a = book(doctor, booking_date, '09:00')
    assert svc.find_appointment(a.id).id == a.id
    svc.remove_appointment(a.id)
    with pytest.raises(NotFound):
        svc.find_appointment(a.id)
    with pytest.raises(NotFound):
        svc.remove_appointment(a.id)
    with pytest.raises(NotFound):
        svc.update_appointment(a.id, {'reason': 'x'})


def test_admin_move_to_another_day_gets_new_queue_number(doctor, booking_date):
    next_day = booking_date + datetime.timedelta(days=1)
    book(doctor, next_day, '08:00')
    moving = book(doctor, booking_date, '09:00')
    assert moving.queue_number == 1

    moved = svc.update_appointment(moving.id, {'date': next_day})
    assert moved.date == next_day
    assert moved.time_slot == '09:00'
    assert moved.queue_number == 2


def test_admin_move_to_another_doctor_gets_their_next_number(make_doctor, booking_date):
    d1, d2 = make_doctor(), make_doctor()
    book(d2, booking_date, '08:00')
    moving = book(d1, booking_date, '09:00')
    moved = svc.update_appointment(moving.id, {'doctor_id': d2.id})
    assert moved.doctor_id == d2.id
    assert moved.queue_number == 2


def test_admin_update_same_day_keeps_queue_number(doctor, booking_date):
    book(doctor, booking_date, '08:00')
    a = book(doctor, booking_date, '09:00')
    updated = svc.update_appointment(a.id, {'date': booking_date, 'time_slot': '10:00'})
    assert updated.queue_number == 2
