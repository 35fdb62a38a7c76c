from __future__ import annotations

import logging
from typing import Optional

import bleach
from django.db import IntegrityError, transaction
from django.db.models import Count
from django.utils import timezone

from core.exceptions import Conflict, Forbidden, NotFound, ValidationError
from core.models import Appointment, DiagnosticCenter, DiagnosticTest, User
from core.services.ids import parse_id

logger = logging.getLogger(__name__)

TEST_FIELDS = ('name', 'description', 'category', 'price', 'duration', 'preparation_instructions', 'requirements', 'is_active')
CENTER_FIELDS = ('name', 'description', 'address', 'phone', 'email', 'operating_hours', 'services', 'is_active')


def format_address(address) -> dict:
    address = address or {}
    return {k: address.get(k, '') for k in ('street', 'city', 'state', 'zipCode', 'country')}


def format_center(c: DiagnosticCenter) -> dict:
    return {
        'id': c.id,
        'name': c.name,
        'description': c.description,
        'address': format_address(c.address),
        'phone': c.phone,
        'email': c.email,
        'operatingHours': c.operating_hours,
        'services': c.services,
        'adminId': c.admin_id,
        'isActive': c.is_active,
        'rating': c.rating,
        'totalReviews': c.total_reviews,
    }


def format_test(t: DiagnosticTest) -> dict:
    return {
        'id': t.id,
        'centerId': t.center_id,
        'name': t.name,
        'description': t.description,
        'category': t.category,
        'price': float(t.price),
        'duration': t.duration,
        'preparationInstructions': t.preparation_instructions,
        'requirements': t.requirements,
        'isActive': t.is_active,
    }


def get_center(center_id, *, active_only: bool = True) -> DiagnosticCenter:
    qs = DiagnosticCenter.objects.filter(id=parse_id(center_id, 'center'))
    if active_only:
        qs = qs.filter(is_active=True)
    center = qs.first()
    if not center:
        raise NotFound('Diagnostic center not found')
    return center


def resolve_center_for(user: User, center_id=None) -> DiagnosticCenter:
    """Return the center a privileged ``user`` operates on.

    A center admin always gets the center they administer; a supplied
    ``center_id`` is ignored for them.  A system admin must name the
    center explicitly.
    """
    role = getattr(user, 'role', '')
    if role == User.ROLE_CENTER_ADMIN:
        center = DiagnosticCenter.objects.filter(admin=user).order_by('id').first()
        if not center:
            raise Forbidden('No diagnostic center found for this admin')
        return center
    if role == User.ROLE_ADMIN:
        if not center_id:
            raise Forbidden('A center id is required')
        return get_center(center_id, active_only=False)
    raise Forbidden()


# ---------------------------------------------------------------------
# Public catalogue
# ---------------------------------------------------------------------
def list_centers(*, q: Optional[str] = None) -> list[dict]:
    qs = DiagnosticCenter.objects.filter(is_active=True)
    if q:
        qs = qs.filter(name__icontains=q)
    return [format_center(c) for c in qs.order_by('-rating', 'name')]


def list_center_tests(center: DiagnosticCenter) -> list[dict]:
    return [format_test(t) for t in center.tests.filter(is_active=True).order_by('category', 'name')]


# ---------------------------------------------------------------------
# Admin: centers
# ---------------------------------------------------------------------
def _center_admin(admin_id) -> Optional[User]:
    if admin_id in (None, ''):
        return None
    user = User.objects.filter(id=admin_id).first()
    if not user or user.role != User.ROLE_CENTER_ADMIN:
        raise ValidationError('adminId must reference a diagnostic center admin')
    return user


def create_center(data: dict) -> DiagnosticCenter:
    fields = {k: data[k] for k in CENTER_FIELDS if k in data}
    fields['description'] = bleach.clean(fields.get('description', ''), strip=True)
    center = DiagnosticCenter.objects.create(admin=_center_admin(data.get('admin_id')), **fields)
    logger.info('Diagnostic center %s created', center.id)
    return center


def update_center(center: DiagnosticCenter, data: dict) -> DiagnosticCenter:
    for k in CENTER_FIELDS:
        if k in data:
            setattr(center, k, data[k])
    if 'description' in data:
        center.description = bleach.clean(center.description or '', strip=True)
    if 'admin_id' in data:
        center.admin = _center_admin(data['admin_id'])
    center.save()
    return center


# ---------------------------------------------------------------------
# Center admin: tests
# ---------------------------------------------------------------------
def _ensure_unique_name(center: DiagnosticCenter, name: str, exclude_id: Optional[int] = None) -> None:
    qs = DiagnosticTest.objects.filter(center=center, name=name, is_active=True)
    if exclude_id:
        qs = qs.exclude(id=exclude_id)
    if qs.exists():
        raise Conflict('A test with this name already exists in your center')


def add_test(center: DiagnosticCenter, data: dict) -> DiagnosticTest:
    missing = [k for k in ('name', 'category', 'price', 'duration') if data.get(k) in (None, '')]
    if missing:
        raise ValidationError('Please provide all required fields: name, category, price, and duration')
    name = data['name'].strip()
    _ensure_unique_name(center, name)
    fields = {k: data[k] for k in TEST_FIELDS if k in data}
    fields.update(name=name, is_active=True)
    fields['description'] = bleach.clean(fields.get('description', ''), strip=True)
    try:
        with transaction.atomic():
            test = DiagnosticTest.objects.create(center=center, **fields)
    except IntegrityError:
        raise Conflict('A test with this name already exists in your center')
    logger.info('Test %s "%s" added to center %s', test.id, test.name, center.id)
    return test


def _center_test(center: DiagnosticCenter, test_id) -> DiagnosticTest:
    test = DiagnosticTest.objects.filter(id=parse_id(test_id, 'test'), center=center).first()
    if not test:
        raise NotFound('Test not found or you do not have permission to modify it')
    return test


def update_test(center: DiagnosticCenter, test_id, data: dict) -> DiagnosticTest:
    """Update a test of ``center``.  Price changes never touch booked appointments."""
    test = _center_test(center, test_id)
    if any(k in data and data[k] in (None, '') for k in ('name', 'category', 'price', 'duration')):
        raise ValidationError('name, category, price and duration cannot be empty')
    for k in TEST_FIELDS:
        if k in data:
            setattr(test, k, data[k])
    test.name = test.name.strip()
    if test.is_active:
        _ensure_unique_name(center, test.name, exclude_id=test.id)
    try:
        with transaction.atomic():
            test.save()
    except IntegrityError:
        raise Conflict('A test with this name already exists in your center')
    return test


def deactivate_test(center: DiagnosticCenter, test_id) -> None:
    test = _center_test(center, test_id)
    test.is_active = False
    test.save(update_fields=['is_active', 'updated_at'])
    logger.info('Test %s deactivated in center %s', test.id, center.id)


# ---------------------------------------------------------------------
# Center admin: dashboard
# ---------------------------------------------------------------------
def dashboard(center: DiagnosticCenter, *, today=None) -> dict:
    from core.services.appointments import format_appointment

    today = today or timezone.localdate()
    appointments = Appointment.objects.filter(center=center)
    recent = appointments.select_related('center', 'test', 'patient').order_by('-created_at')[:5]
    by_status = {row['status']: row['n'] for row in appointments.values('status').annotate(n=Count('id'))}
    return {
        'diagnosticCenter': {
            'id': center.id,
            'name': center.name,
            'address': format_address(center.address),
            'phone': center.phone,
            'email': center.email,
            'rating': center.rating,
            'totalReviews': center.total_reviews,
        },
        'stats': {
            'totalAppointments': appointments.count(),
            'totalTests': center.tests.filter(is_active=True).count(),
            'todaysAppointments': appointments.filter(appointment_date=today).count(),
            'recentAppointments': [format_appointment(a, with_patient=True) for a in recent],
            'appointmentStats': [
                {'status': s, 'count': by_status.get(s, 0)} for s, _ in Appointment.STATUS_CHOICES
            ],
        },
    }
