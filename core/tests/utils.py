"""Shared builders for the API tests."""
from datetime import date, time
from decimal import Decimal

from rest_framework.test import APIClient

from core.auth_views import issue_tokens
from core.models import Appointment, DiagnosticCenter, DiagnosticTest, User

PASSWORD = 'Str0ng-Passw0rd!'


def make_user(email, role=User.ROLE_PATIENT, *, verified=True, name=''):
    return User.objects.create_user(
        username=email,
        email=email,
        password=PASSWORD,
        role=role,
        name=name or email.split('@')[0],
        is_email_verified=verified,
    )


def make_center(name='City Diagnostics', admin=None, **extra):
    return DiagnosticCenter.objects.create(
        name=name,
        phone='555-0100',
        email=f"{name.lower().replace(' ', '')}@example.com",
        address={'street': '1 Main St', 'city': 'Springfield'},
        admin=admin,
        **extra,
    )


def make_test(center, name='Complete Blood Count', price='25.00', **extra):
    return DiagnosticTest.objects.create(
        center=center,
        name=name,
        category=extra.pop('category', 'Blood'),
        price=Decimal(price),
        duration=extra.pop('duration', 15),
        **extra,
    )


def make_appointment(patient, test, status=Appointment.STATUS_SCHEDULED, **extra):
    return Appointment.objects.create(
        patient=patient,
        center=test.center,
        test=test,
        appointment_date=extra.pop('appointment_date', date(2030, 1, 15)),
        appointment_time=extra.pop('appointment_time', time(9, 30)),
        status=status,
        total_amount=test.price,
        **extra,
    )


def client_for(user=None) -> APIClient:
    client = APIClient()
    if user is not None:
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_tokens(user)['token']}")
    return client
