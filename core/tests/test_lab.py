"""Lab request lifecycle: creation, sample collection, results and reports."""
import re

import pytest

from core.exceptions import NotFound, PermissionDenied, ValidationError
from core.models import Appointment, LabRequest
from core.services import appointments as appointment_svc
from core.services import lab as svc

pytestmark = pytest.mark.django_db

CODE_RE = re.compile(r'^LR-\d{8}-[A-Z0-9]{6}$')


def order(doctor, tests=('FBS', 'CRP'), patient=None, **extra):
    return svc.create_request(
        doctor_user_id=doctor.user_id,
        patient_name=extra.pop('patient_name', 'Kamal Silva'),
        tests=list(tests),
        patient_user_id=patient.id if patient else None,
        **extra,
    )


def results(**values):
    return [{'test_name': name, 'value': value, 'remarks': None} for name, value in values.items()]


def test_normalize_tests_trims_and_dedupes():
    assert svc.normalize_tests(['FBC', 'FBC', ' ']) == ['FBC']
    assert svc.normalize_tests([' CRP ', 'FBS', 'CRP', 'crp', '']) == ['CRP', 'FBS', 'crp']
    assert svc.normalize_tests([]) == []


def test_create_stores_code_and_unique_tests(doctor):
    req = order(doctor, ['FBC', 'FBC', ' '])
    assert CODE_RE.match(req.code)
    assert req.status == LabRequest.STATUS_PENDING
    assert [t.test_name for t in req.tests.all()] == ['FBC']


def test_create_requires_tests_and_patient_name(doctor):
    with pytest.raises(ValidationError) as exc:
        order(doctor, [' ', ''])
    assert 'At least one test is required' in str(exc.value.detail)
    with pytest.raises(ValidationError):
        order(doctor, patient_name='   ')
    assert LabRequest.objects.count() == 0


def test_create_validates_patient_and_appointment(doctor):
    with pytest.raises(ValidationError):
        svc.create_request(doctor_user_id=doctor.user_id, patient_name='X', tests=['FBS'], patient_user_id=999999)
    with pytest.raises(ValidationError):
        svc.create_request(doctor_user_id=doctor.user_id, patient_name='X', tests=['FBS'], appointment_id=999999)


def test_cannot_order_for_another_doctors_appointment(make_doctor, booking_date):
    mine, theirs = make_doctor(), make_doctor()
    appt = appointment_svc.create_appointment(
        doctor_id=theirs.id, patient_name='Kamal', contact_number='0771234567',
        appointment_type='Consultation', date=booking_date, time_slot='09:00',
    )
    with pytest.raises(PermissionDenied) as exc:
        order(mine, appointment_id=appt.id)
    assert "other doctors' appointments" in str(exc.value.detail)

    own = order(theirs, appointment_id=appt.id)
    assert own.appointment_id == appt.id


def test_code_collision_is_retried(doctor, monkeypatch):
    taken = order(doctor).code
    codes = iter([taken, taken, 'LR-20250601-ZZZZZZ'])
    monkeypatch.setattr(svc, 'generate_code', lambda now=None: next(codes))

    req = order(doctor)
    assert req.code == 'LR-20250601-ZZZZZZ'
    assert LabRequest.objects.count() == 2


def test_code_collision_gives_up_after_three_attempts(doctor, monkeypatch):
    taken = order(doctor).code
    monkeypatch.setattr(svc, 'generate_code', lambda now=None: taken)
    with pytest.raises(ValidationError) as exc:
        order(doctor)
    assert 'Could not generate a unique lab request code' in str(exc.value.detail)
    assert LabRequest.objects.count() == 1


def test_state_machine_rejects_skips_and_repeats(doctor, lab_staff):
    req = order(doctor)
    with pytest.raises(ValidationError) as exc:
        svc.complete_request(req.code, lab_staff.id, 'Nimal', results(FBS='5.4', CRP='3'))
    assert 'Sample must be collected' in str(exc.value.detail)

    svc.mark_sample_collected(req.code, lab_staff.id)
    with pytest.raises(ValidationError) as exc:
        svc.mark_sample_collected(req.code, lab_staff.id)
    assert 'Only pending requests' in str(exc.value.detail)


def test_mark_sample_collected_records_technician(doctor, lab_staff):
    req = order(doctor)
    out = svc.mark_sample_collected(req.code, lab_staff.id, '  Nimal Perera ')
    assert out.status == LabRequest.STATUS_SAMPLE_COLLECTED
    assert out.sample_collected_at is not None
    assert out.technician_user_id == lab_staff.id
    assert out.technician_name == 'Nimal Perera'

    other = order(doctor)
    assert svc.mark_sample_collected(other.code, lab_staff.id, '  ').technician_name is None


def test_unknown_code_is_not_found(lab_staff):
    with pytest.raises(NotFound):
        svc.mark_sample_collected('LR-00000000-AAAAAA', lab_staff.id)
    with pytest.raises(NotFound):
        svc.complete_request('LR-00000000-AAAAAA', lab_staff.id, 'Nimal', [])
    with pytest.raises(NotFound):
        svc.get_queue_item('LR-00000000-AAAAAA')


def test_complete_requires_every_test(doctor, lab_staff):
    req = order(doctor)
    svc.mark_sample_collected(req.code, lab_staff.id)

    with pytest.raises(ValidationError) as exc:
        svc.complete_request(req.code, lab_staff.id, 'Nimal', results(FBS='5.4'))
    assert 'Missing result for test: CRP' in str(exc.value.detail)

    blank = results(FBS='5.4') + [{'test_name': 'CRP', 'value': '   ', 'remarks': ' '}]
    with pytest.raises(ValidationError) as exc:
        svc.complete_request(req.code, lab_staff.id, 'Nimal', blank)
    assert 'Result value or remarks required for test: CRP' in str(exc.value.detail)

    with pytest.raises(ValidationError) as exc:
        svc.complete_request(req.code, lab_staff.id, '  ', results(FBS='5.4', CRP='3'))
    assert 'Technician name is required' in str(exc.value.detail)

    req.refresh_from_db()
    assert req.status == LabRequest.STATUS_SAMPLE_COLLECTED
    assert all(t.result_value is None for t in req.tests.all())


def test_complete_later_entries_win_and_remarks_suffice(doctor, lab_staff):
    req = order(doctor)
    svc.mark_sample_collected(req.code, lab_staff.id)
    submitted = [
        {'test_name': ' FBS ', 'value': '9.9', 'remarks': None},
        {'test_name': 'FBS', 'value': '5.4', 'remarks': None},
        {'test_name': 'CRP', 'value': None, 'remarks': 'Haemolysed sample'},
        {'test_name': '  ', 'value': 'ignored', 'remarks': None},
    ]
    done = svc.complete_request(req.code, lab_staff.id, 'Nimal Perera', submitted)
    by_name = {t.test_name: t for t in done.tests.all()}
    assert by_name['FBS'].result_value == '5.4'
    assert by_name['CRP'].result_value is None
    assert by_name['CRP'].result_remarks == 'Haemolysed sample'
    assert done.status == LabRequest.STATUS_COMPLETED
    assert done.completed_at is not None
    assert done.technician_name == 'Nimal Perera'


def test_queue_orders_by_status_then_newest(doctor, lab_staff):
    done = order(doctor)
    svc.mark_sample_collected(done.code, lab_staff.id)
    svc.complete_request(done.code, lab_staff.id, 'Nimal', results(FBS='1', CRP='2'))
    collected = order(doctor)
    svc.mark_sample_collected(collected.code, lab_staff.id)
    older_pending = order(doctor)
    newer_pending = order(doctor)

    codes = [r.code for r in svc.list_queue()]
    assert codes == [newer_pending.code, older_pending.code, collected.code, done.code]
    assert [r.code for r in svc.list_queue(status=LabRequest.STATUS_PENDING)] == [
        newer_pending.code, older_pending.code,
    ]


def test_doctor_sees_only_own_requests(make_doctor):
    mine, theirs = make_doctor(), make_doctor()
    a = order(mine)
    b = order(theirs)
    assert [r.code for r in svc.list_doctor_requests(mine.user_id)] == [a.code]
    assert svc.get_doctor_request(mine.user_id, a.code).code == a.code
    with pytest.raises(PermissionDenied):
        svc.get_doctor_request(mine.user_id, b.code)
    with pytest.raises(NotFound):
        svc.get_doctor_request(mine.user_id, 'LR-00000000-AAAAAA')


def test_end_to_end_report_flow(doctor, patient, make_user, lab_staff):
    req = order(doctor, ['FBS', 'CRP'], patient=patient)
    assert CODE_RE.match(req.code)
    assert req.status == LabRequest.STATUS_PENDING

    with pytest.raises(PermissionDenied) as exc:
        svc.get_my_report(patient.id, req.code)
    assert 'Report not available yet' in str(exc.value.detail)
    assert svc.list_my_reports(patient.id) == []

    svc.mark_sample_collected(req.code, lab_staff.id, 'Nimal')
    svc.complete_request(req.code, lab_staff.id, 'Nimal', results(FBS='5.4 mmol/L', CRP='3 mg/L'))

    report = svc.get_my_report(patient.id, req.code)
    assert report.status == LabRequest.STATUS_COMPLETED
    assert [(t.test_name, t.result_value) for t in report.tests.all()] == [
        ('FBS', '5.4 mmol/L'), ('CRP', '3 mg/L'),
    ]
    assert [r.code for r in svc.list_my_reports(patient.id)] == [req.code]

    stranger = make_user()
    with pytest.raises(PermissionDenied) as exc:
        svc.get_my_report(stranger.id, req.code)
    assert 'Access denied' in str(exc.value.detail)
    with pytest.raises(NotFound):
        svc.get_my_report(patient.id, 'LR-00000000-AAAAAA')


def test_appointment_removal_keeps_lab_request(doctor, booking_date):
    appt = appointment_svc.create_appointment(
        doctor_id=doctor.id, patient_name='Kamal', contact_number='0771234567',
        appointment_type='Consultation', date=booking_date, time_slot='09:00',
    )
    req = order(doctor, appointment_id=appt.id)
    appointment_svc.remove_appointment(appt.id)
    req.refresh_from_db()
    assert req.appointment_id is None
    assert not Appointment.objects.filter(pk=appt.id).exists()
