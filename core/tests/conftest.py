import pytest
from django.core.cache import cache

from core.models import User
from core.tests.utils import client_for, make_appointment, make_center, make_test, make_user


@pytest.fixture(autouse=True)
def _clean_cache():
    # Throttle counters and cached review lists live in the cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture(autouse=True)
def _fast_hashers(settings):
    settings.PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']


@pytest.fixture
def patient(db):
    return make_user('pat@example.com')


@pytest.fixture
def other_patient(db):
    return make_user('other@example.com')


@pytest.fixture
def center_admin(db):
    return make_user('lab@example.com', User.ROLE_CENTER_ADMIN)


@pytest.fixture
def system_admin(db):
    return make_user('root@example.com', User.ROLE_ADMIN)


@pytest.fixture
def center(center_admin):
    return make_center(admin=center_admin)


@pytest.fixture
def blood_test(center):
    return make_test(center)


@pytest.fixture
def completed_appointment(patient, blood_test):
    return make_appointment(patient, blood_test, status='completed')


@pytest.fixture
def patient_client(patient):
    return client_for(patient)


@pytest.fixture
def center_admin_client(center_admin):
    return client_for(center_admin)


@pytest.fixture
def admin_client(system_admin):
    return client_for(system_admin)
