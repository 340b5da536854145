import datetime
import itertools

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from core.models import Doctor, User

_seq = itertools.count(1)


@pytest.fixture(autouse=True)
def _clear_throttle_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def make_user(db):
    def _make(role=User.ROLE_USER, *, password='Str0ng-Passw0rd!', status=User.STATUS_ACTIVE,
              is_confirmed=True, **extra):
        n = next(_seq)
        email = extra.pop('email', f'user{n}@hospital.test')
        return User.objects.create_user(
            username=email,
            email=email,
            password=password,
            first_name=extra.pop('first_name', 'Test'),
            last_name=extra.pop('last_name', f'User{n}'),
            phone=extra.pop('phone', f'+9477{n:07d}'),
            role=role,
            status=status,
            is_confirmed=is_confirmed,
            **extra,
        )
    return _make


@pytest.fixture
def make_doctor(make_user):
    def _make(specialization_id=1, **extra):
        user = make_user(User.ROLE_DOCTOR)
        return Doctor.objects.create(
            user=user,
            full_name=f'{user.first_name} {user.last_name}',
            slmc_number=extra.pop('slmc_number', f'SLMC-{user.id}'),
            specialization_id=specialization_id,
            **extra,
        )
    return _make


@pytest.fixture
def admin_user(make_user):
    return make_user(User.ROLE_ADMIN)


@pytest.fixture
def patient(make_user):
    return make_user(User.ROLE_USER)


@pytest.fixture
def lab_staff(make_user):
    return make_user(User.ROLE_STAFF, first_name='Nimal', last_name='Perera')


@pytest.fixture
def doctor(make_doctor):
    return make_doctor()


@pytest.fixture
def booking_date():
    return datetime.date(2025, 6, 1)


@pytest.fixture
def client_for():
    def _client(user=None):
        c = APIClient()
        if user is not None:
            c.force_authenticate(user=user)
        return c
    return _client
