"""
Account management: self-registration, staff and patient creation by
administrators, confirmation, role changes and profile updates.

The e-mail address is also stored as the username so that Django's
``authenticate`` can be used for logins.
"""
import logging
from typing import Optional

from django.contrib.auth import authenticate, get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from rest_framework.exceptions import AuthenticationFailed

from core.exceptions import Conflict, NotFound, ValidationError
from core.models import Doctor
from core.services.audit import log_action

logger = logging.getLogger(__name__)

User = get_user_model()

PROFILE_FIELDS = ('first_name', 'last_name', 'email', 'phone')


def _check_password(password: str, user=None) -> None:
    try:
        validate_password(password, user=user)
    except DjangoValidationError as e:
        raise ValidationError({'password': e.messages})


def ensure_unique_contact(email: Optional[str], phone: Optional[str], exclude_user_id: Optional[int]=None) -> None:
    others = User.objects.all()
    if exclude_user_id:
        others = others.exclude(pk=exclude_user_id)
    if email and others.filter(email__iexact=email).exists():
        raise Conflict('Email already registered')
    if phone and others.filter(phone=phone).exists():
        raise Conflict('Phone number already registered')


def _create_account(*, first_name, last_name, email, phone, password, role, status, is_confirmed):
    email = email.strip().lower()
    ensure_unique_contact(email, phone)
    candidate = User(first_name=first_name, last_name=last_name, email=email, username=email)
    _check_password(password, user=candidate)
    return User.objects.create_user(
        username=email,
        email=email,
        password=password,
        first_name=first_name,
        last_name=last_name,
        phone=phone,
        role=role,
        status=status,
        is_confirmed=is_confirmed,
    )


@transaction.atomic
def register(*, first_name: str, last_name: str, email: str, phone: str, password: str):
    """Public signup: a patient account waiting for administrator confirmation."""
    user = _create_account(
        first_name=first_name, last_name=last_name, email=email, phone=phone, password=password,
        role=User.ROLE_USER, status=User.STATUS_PENDING, is_confirmed=False,
    )
    log_action(user=user, action='user_register', object_type='user', object_id=user.id)
    logger.info('Account %s registered, awaiting confirmation', user.id)
    return user


@transaction.atomic
def create_staff(
    *, first_name: str, last_name: str, email: str, phone: str, password: str, role: str,
    slmc_number: Optional[str]=None, specialization_id: Optional[int]=None,
    description: Optional[str]=None, joined_date=None, actor=None,
):
    """Create an active staff account; doctors get their directory profile in the same transaction."""
    if role == User.ROLE_DOCTOR and (not slmc_number or specialization_id is None):
        raise ValidationError('slmcNumber and specializationId are required for doctor staff accounts')

    user = _create_account(
        first_name=first_name, last_name=last_name, email=email, phone=phone, password=password,
        role=role, status=User.STATUS_ACTIVE, is_confirmed=True,
    )
    if role == User.ROLE_DOCTOR:
        if Doctor.objects.filter(slmc_number=slmc_number).exists():
            raise Conflict('SLMC number already registered')
        Doctor.objects.create(
            user=user,
            full_name=f"{user.first_name} {user.last_name}".strip(),
            slmc_number=slmc_number,
            specialization_id=specialization_id,
            phone=user.phone,
            email=user.email,
            description=description,
            joined_date=joined_date,
        )
    log_action(user=actor, action='staff_create', object_type='user', object_id=user.id, detail={'role': role})
    logger.info('Staff account %s created with role %s', user.id, role)
    return user


@transaction.atomic
def create_patient(
    *, first_name: str, last_name: str, email: str, phone: str, password: str,
    status: Optional[str]=None, is_confirmed: Optional[bool]=None, actor=None,
):
    user = _create_account(
        first_name=first_name, last_name=last_name, email=email, phone=phone, password=password,
        role=User.ROLE_USER,
        status=status or User.STATUS_ACTIVE,
        is_confirmed=True if is_confirmed is None else is_confirmed,
    )
    log_action(user=actor, action='patient_create', object_type='user', object_id=user.id)
    logger.info('Patient account %s created by administrator', user.id)
    return user


def list_users():
    return list(User.objects.order_by('-created_at', '-id'))


def get_user(user_id: int):
    user = User.objects.filter(pk=user_id).first()
    if user is None:
        raise NotFound('User not found')
    return user


@transaction.atomic
def confirm_user(user_id: int, actor=None):
    user = get_user(user_id)
    if user.is_confirmed and user.status == User.STATUS_ACTIVE:
        return user
    user.is_confirmed = True
    user.status = User.STATUS_ACTIVE
    user.save(update_fields=['is_confirmed', 'status', 'updated_at'])
    log_action(user=actor, action='user_confirm', object_type='user', object_id=user.id)
    logger.info('Account %s confirmed', user.id)
    return user


@transaction.atomic
def update_role(user_id: int, role: str, actor=None):
    user = get_user(user_id)
    previous = user.role
    user.role = role
    user.save(update_fields=['role', 'updated_at'])
    log_action(user=actor, action='user_role', object_type='user', object_id=user.id,
               detail={'from': previous, 'to': role})
    return user


@transaction.atomic
def update_patient(user_id: int, changes: dict, actor=None):
    user = get_user(user_id)
    if user.role != User.ROLE_USER:
        raise ValidationError('Target user is not a patient')
    ensure_unique_contact(changes.get('email'), changes.get('phone'), exclude_user_id=user.id)
    fields = [f for f in PROFILE_FIELDS + ('status', 'is_confirmed') if changes.get(f) is not None]
    for field in fields:
        setattr(user, field, changes[field])
    if 'email' in fields:
        user.email = user.email.strip().lower()
        user.username = user.email
        fields.append('username')
    user.save(update_fields=fields + ['updated_at'])
    log_action(user=actor, action='patient_update', object_type='user', object_id=user.id,
               detail={'fields': fields})
    return user


@transaction.atomic
def update_me(user, changes: dict):
    ensure_unique_contact(changes.get('email'), changes.get('phone'), exclude_user_id=user.id)
    fields = [f for f in PROFILE_FIELDS if f in changes]
    for field in fields:
        setattr(user, field, changes[field])
    if 'email' in fields:
        user.email = user.email.strip().lower()
        user.username = user.email
        fields.append('username')
    user.save(update_fields=fields + ['updated_at'])
    return user


def login(request, email: str, password: str):
    """Return the account for valid credentials of a confirmed, active user."""
    email = (email or '').strip().lower()
    user = authenticate(request, username=email, password=password)
    if user is None:
        logger.warning('Failed login for %s', email)
        raise AuthenticationFailed('Invalid credentials')
    if not user.is_confirmed:
        raise AuthenticationFailed('Account not confirmed yet')
    if user.status != User.STATUS_ACTIVE:
        raise AuthenticationFailed('Account not active yet')
    log_action(user=user, action='login', object_type='user', object_id=user.id,
               detail={'ip': request.META.get('REMOTE_ADDR')})
    return user
