import logging

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction

from core.exceptions import Conflict, NotFound
from core.models import Doctor, UNASSIGNED_SPECIALIZATION

logger = logging.getLogger(__name__)

User = get_user_model()

EDITABLE_FIELDS = (
    'full_name', 'slmc_number', 'specialization_id', 'phone', 'email', 'description', 'joined_date',
)


def _doctor_accounts_without_profile():
    return list(
        User.objects.filter(role=User.ROLE_DOCTOR, doctor_profile__isnull=True)
        .only('id', 'first_name', 'last_name', 'email', 'phone')
    )


def ensure_doctors_for_doctor_users() -> int:
    """Give every DOCTOR account without a profile a placeholder one.

    Concurrent directory reads may provision the same account; the loser's
    rows are skipped by the one-to-one constraint.  Returns the number of
    accounts that were missing a profile.
    """
    missing = _doctor_accounts_without_profile()
    if not missing:
        return 0
    with transaction.atomic():
        Doctor.objects.bulk_create([
            Doctor(
                user=u,
                full_name=f"{u.first_name} {u.last_name}".strip() or u.email,
                slmc_number=f"TEMP-{u.id}",
                specialization_id=UNASSIGNED_SPECIALIZATION,
                phone=u.phone,
                email=u.email,
            )
            for u in missing
        ], ignore_conflicts=True)
    logger.info('Provisioned %d doctor profile(s) for DOCTOR accounts', len(missing))
    return len(missing)


def list_doctors():
    ensure_doctors_for_doctor_users()
    return list(Doctor.objects.order_by('full_name', 'id'))


def list_confirmed_doctors():
    ensure_doctors_for_doctor_users()
    qs = Doctor.objects.filter(user__role=User.ROLE_DOCTOR, user__is_confirmed=True)
    return list(qs.order_by('full_name', 'id'))


def get_doctor(doctor_id: int) -> Doctor:
    doctor = Doctor.objects.filter(pk=doctor_id).first()
    if doctor is None:
        raise NotFound('Doctor not found')
    return doctor


def create_doctor(*, user_id: int, full_name: str, slmc_number: str, specialization_id: int, **extra) -> Doctor:
    if not User.objects.filter(pk=user_id).exists():
        raise NotFound('User not found')
    fields = {k: v for k, v in extra.items() if k in EDITABLE_FIELDS}
    try:
        with transaction.atomic():
            doctor = Doctor.objects.create(
                user_id=user_id, full_name=full_name, slmc_number=slmc_number,
                specialization_id=specialization_id, **fields,
            )
    except IntegrityError as exc:
        raise Conflict('Doctor profile already exists for this user or SLMC number') from exc
    logger.info('Doctor profile %s created for user %s', doctor.id, user_id)
    return doctor


def update_doctor(doctor_id: int, changes: dict) -> Doctor:
    doctor = get_doctor(doctor_id)
    fields = [f for f in EDITABLE_FIELDS if f in changes]
    for field in fields:
        setattr(doctor, field, changes[field])
    try:
        with transaction.atomic():
            doctor.save(update_fields=fields + ['updated_at'])
    except IntegrityError as exc:
        raise Conflict('SLMC number already registered') from exc
    return doctor
