"""
Laboratory request workflow.

A doctor orders tests; lab staff move the request through

    PENDING --mark_sample_collected--> SAMPLE_COLLECTED --complete_request--> COMPLETED

and the linked patient may read the report once it is completed.  No
other transitions exist.  Transitions lock the request row and re-check
its status inside the transaction, so two technicians racing on the
same code cannot both succeed.
"""
import logging
import string
from typing import Iterable, Optional

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Prefetch
from django.utils import timezone
from django.utils.crypto import get_random_string

from core.exceptions import NotFound, PermissionDenied, ValidationError
from core.models import Appointment, LabRequest, LabRequestTest
from core.services.audit import log_action

logger = logging.getLogger(__name__)

User = get_user_model()

CODE_ATTEMPTS = 3
CODE_SUFFIX_LENGTH = 6
CODE_ALPHABET = string.ascii_uppercase + string.digits


def normalize_tests(tests: Iterable[str]) -> list[str]:
    """Trim names, drop blanks and duplicates, keep first-seen order."""
    cleaned = ((t or '').strip() for t in tests or [])
    return list(dict.fromkeys(t for t in cleaned if t))


def generate_code(now=None) -> str:
    """``LR-<YYYYMMDD>-<6 random chars>`` using the local date."""
    today = timezone.localdate(now)
    return f"LR-{today:%Y%m%d}-{get_random_string(CODE_SUFFIX_LENGTH, CODE_ALPHABET)}"


def _requests():
    return LabRequest.objects.select_related('doctor_user', 'patient_user').prefetch_related(
        Prefetch('tests', queryset=LabRequestTest.objects.order_by('id'))
    )


def _get_by_code(code: str, message: str='Lab request not found') -> LabRequest:
    req = _requests().filter(code=code).first()
    if req is None:
        raise NotFound(message)
    return req


def create_request(
    *,
    doctor_user_id: int,
    patient_name: str,
    tests: Iterable[str],
    patient_user_id: Optional[int]=None,
    appointment_id: Optional[int]=None,
) -> LabRequest:
    names = normalize_tests(tests)
    if not names:
        raise ValidationError('At least one test is required')

    patient_name = (patient_name or '').strip()
    if not patient_name:
        raise ValidationError('Patient name is required')

    if patient_user_id and not User.objects.filter(pk=patient_user_id).exists():
        raise ValidationError('Patient user not found')

    if appointment_id:
        appointment = Appointment.objects.select_related('doctor').filter(pk=appointment_id).first()
        if appointment is None:
            raise ValidationError('Appointment not found')
        if appointment.doctor.user_id != doctor_user_id:
            raise PermissionDenied("You cannot create lab requests for other doctors' appointments")

    for attempt in range(1, CODE_ATTEMPTS + 1):
        code = generate_code()
        try:
            with transaction.atomic():
                req = LabRequest.objects.create(
                    code=code,
                    doctor_user_id=doctor_user_id,
                    patient_user_id=patient_user_id or None,
                    appointment_id=appointment_id or None,
                    patient_name=patient_name,
                )
                LabRequestTest.objects.bulk_create(
                    [LabRequestTest(request=req, test_name=name) for name in names]
                )
                log_action(
                    user_id=doctor_user_id, action='lab_request_create', object_type='lab_request',
                    object_id=req.id, detail={'code': code, 'tests': names},
                )
        except IntegrityError:
            if not LabRequest.objects.filter(code=code).exists():
                raise
            logger.warning('Lab request code %s already taken (attempt %d/%d)', code, attempt, CODE_ATTEMPTS)
            continue
        logger.info('Lab request %s created by doctor %s with %d test(s)', code, doctor_user_id, len(names))
        return _get_by_code(code)

    raise ValidationError('Could not generate a unique lab request code. Please retry.')


def list_doctor_requests(doctor_user_id: int, *, status: Optional[str]=None):
    qs = _requests().filter(doctor_user_id=doctor_user_id)
    if status:
        qs = qs.filter(status=status)
    return list(qs.order_by('-created_at', '-id'))


def get_doctor_request(doctor_user_id: int, code: str) -> LabRequest:
    req = _get_by_code(code)
    if req.doctor_user_id != doctor_user_id:
        raise PermissionDenied('Access denied')
    return req


def list_queue(*, status: Optional[str]=None):
    """Pending work first, then collected samples, then completed; newest first within each."""
    qs = _requests()
    if status:
        qs = qs.filter(status=status)
    requests = list(qs.order_by('-created_at', '-id'))
    # sort is stable, so the created_at order survives within a tier
    return sorted(requests, key=lambda r: LabRequest.STATUS_PRIORITY[r.status])


def get_queue_item(code: str) -> LabRequest:
    return _get_by_code(code)


def mark_sample_collected(code: str, technician_user_id: int, technician_name: Optional[str]=None) -> LabRequest:
    with transaction.atomic():
        req = LabRequest.objects.select_for_update().filter(code=code).first()
        if req is None:
            raise NotFound('Lab request not found')
        if req.status != LabRequest.STATUS_PENDING:
            raise ValidationError('Only pending requests can be marked as sample collected')

        req.status = LabRequest.STATUS_SAMPLE_COLLECTED
        req.sample_collected_at = timezone.now()
        req.technician_user_id = technician_user_id
        name = (technician_name or '').strip()
        if name:
            req.technician_name = name
        req.save(update_fields=['status', 'sample_collected_at', 'technician_user', 'technician_name'])
        log_action(user_id=technician_user_id, action='lab_sample_collected', object_type='lab_request',
                   object_id=req.id, detail={'code': code})

    logger.info('Sample collected for lab request %s by user %s', code, technician_user_id)
    return _get_by_code(code)


def complete_request(code: str, technician_user_id: int, technician_name: Optional[str], results: Iterable[dict]) -> LabRequest:
    """Record results for every requested test and close the request.

    ``results`` items carry ``test_name``, ``value`` and ``remarks``.
    Each requested test needs a non-blank value or remarks; the first
    one without names itself in the error.
    """
    with transaction.atomic():
        req = LabRequest.objects.select_for_update().filter(code=code).first()
        if req is None:
            raise NotFound('Lab request not found')
        if req.status != LabRequest.STATUS_SAMPLE_COLLECTED:
            raise ValidationError('Sample must be collected before completing results')

        tech_name = (technician_name or '').strip()
        if not tech_name:
            raise ValidationError('Technician name is required')

        submitted = {}
        for r in results or []:
            key = (r.get('test_name') or '').strip()
            if not key:
                continue
            submitted[key] = (
                (r.get('value') or '').strip() or None,
                (r.get('remarks') or '').strip() or None,
            )

        tests = list(req.tests.order_by('id'))
        for test in tests:
            if test.test_name not in submitted:
                raise ValidationError(f'Missing result for test: {test.test_name}')
            value, remarks = submitted[test.test_name]
            if not value and not remarks:
                raise ValidationError(f'Result value or remarks required for test: {test.test_name}')
            test.result_value, test.result_remarks = value, remarks

        LabRequestTest.objects.bulk_update(tests, ['result_value', 'result_remarks'])
        req.status = LabRequest.STATUS_COMPLETED
        req.completed_at = timezone.now()
        req.technician_user_id = technician_user_id
        req.technician_name = tech_name
        req.save(update_fields=['status', 'completed_at', 'technician_user', 'technician_name'])
        log_action(user_id=technician_user_id, action='lab_request_complete', object_type='lab_request',
                   object_id=req.id, detail={'code': code})

    logger.info('Lab request %s completed by %s', code, tech_name)
    return _get_by_code(code)


def list_my_reports(patient_user_id: int):
    qs = _requests().filter(patient_user_id=patient_user_id, status=LabRequest.STATUS_COMPLETED)
    return list(qs.order_by('-completed_at', '-id'))


def get_my_report(patient_user_id: int, code: str) -> LabRequest:
    req = _get_by_code(code, 'Lab report not found')
    if req.status != LabRequest.STATUS_COMPLETED:
        raise PermissionDenied('Report not available yet')
    if req.patient_user_id != patient_user_id:
        raise PermissionDenied('Access denied')
    return req
