"""
Appointment lifecycle.

Status changes go through :data:`TRANSITIONS`; anything not listed there
raises :class:`InvalidTransition`.  ``completed`` is terminal: it can be
re-entered (a new report replaces the old one) but never left.
"""
from __future__ import annotations

import logging
from typing import Optional

import bleach
from django.db import transaction
from django.utils import timezone

from core.exceptions import Forbidden, InvalidTransition, NotFound, ValidationError
from core.models import Appointment, AppointmentTransition, DiagnosticCenter, DiagnosticTest, User
from core.services.centers import format_address, resolve_center_for
from core.services.ids import parse_id
from core.services.storage import validate_report_file

logger = logging.getLogger(__name__)

SCHEDULED = Appointment.STATUS_SCHEDULED
CONFIRMED = Appointment.STATUS_CONFIRMED
COMPLETED = Appointment.STATUS_COMPLETED
CANCELLED = Appointment.STATUS_CANCELLED

TRANSITIONS = {
    SCHEDULED: {CONFIRMED, COMPLETED, CANCELLED},
    CONFIRMED: {SCHEDULED, COMPLETED, CANCELLED},
    COMPLETED: set(),
    CANCELLED: {SCHEDULED},
}

STATUSES = set(TRANSITIONS)
PATIENT_STATUSES = {CANCELLED}
RESCHEDULABLE = {SCHEDULED, CONFIRMED}
RESULT_STATUSES = [COMPLETED, CONFIRMED]


def can_transition(current: str, new: str) -> bool:
    """Return True if an appointment may move from ``current`` to ``new``."""
    if current == new:
        return True
    return new in TRANSITIONS.get(current, set())


def _clean(text) -> str:
    return bleach.clean((text or '').strip(), strip=True)


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def format_appointment(a: Appointment, *, with_patient: bool = False) -> dict:
    data = {
        'id': a.id,
        'status': a.status,
        'appointmentDate': a.appointment_date.isoformat(),
        'appointmentTime': a.appointment_time.strftime('%H:%M'),
        'totalAmount': float(a.total_amount),
        'notes': a.notes,
        'cancellationReason': a.cancellation_reason,
        'results': {
            'reportUrl': a.report_url,
            'summary': a.result_summary,
            'uploadedAt': _iso(a.result_uploaded_at),
        } if a.report_url else None,
        'center': {
            'id': a.center.id,
            'name': a.center.name,
            'address': format_address(a.center.address),
            'phone': a.center.phone,
        },
        'test': {
            'id': a.test.id,
            'name': a.test.name,
            'category': a.test.category,
            'price': float(a.test.price),
            'duration': a.test.duration,
        },
        'createdAt': _iso(a.created_at),
        'updatedAt': _iso(a.updated_at),
    }
    if with_patient:
        data['patient'] = {
            'id': a.patient.id,
            'name': a.patient.display_name,
            'email': a.patient.email,
            'phone': a.patient.phone,
        }
    return data


def _joined():
    return Appointment.objects.select_related('center', 'test', 'patient')


def _apply_status(appointment: Appointment, new_status: str, *, operator: User, reason: str = '') -> None:
    old_status = appointment.status
    if not can_transition(old_status, new_status):
        raise InvalidTransition(f'Cannot change status from {old_status} to {new_status}')
    if old_status == new_status:
        return
    appointment.status = new_status
    AppointmentTransition.objects.create(
        appointment=appointment,
        from_status=old_status,
        to_status=new_status,
        operator=operator,
        reason=reason[:255],
    )
    logger.info('Appointment %s: %s -> %s by user %s', appointment.id, old_status, new_status, operator.id)


# ---------------------------------------------------------------------
# Patient operations
# ---------------------------------------------------------------------
def create_appointment(patient: User, *, center_id, test_id, appointment_date, appointment_time, notes: str = '') -> Appointment:
    if not center_id or not test_id or not appointment_date or not appointment_time:
        raise ValidationError('All fields are required')
    center = DiagnosticCenter.objects.filter(id=parse_id(center_id, 'center'), is_active=True).first()
    if not center:
        raise NotFound('Diagnostic center not found')
    test = DiagnosticTest.objects.filter(id=parse_id(test_id, 'test'), center=center, is_active=True).first()
    if not test:
        raise NotFound('Test not found')

    appointment = Appointment.objects.create(
        patient=patient,
        center=center,
        test=test,
        appointment_date=appointment_date,
        appointment_time=appointment_time,
        total_amount=test.price,
        notes=_clean(notes),
    )
    logger.info('Appointment %s booked by user %s for test %s (%s)', appointment.id, patient.id, test.id, test.price)
    return _joined().get(id=appointment.id)


def list_patient_appointments(patient: User, *, statuses=None) -> list[dict]:
    qs = _joined().filter(patient=patient)
    if statuses:
        qs = qs.filter(status__in=statuses)
    qs = qs.order_by('-appointment_date', '-appointment_time', '-id')
    return [format_appointment(a) for a in qs]


def _own_appointment(patient: User, appointment_id) -> Appointment:
    appointment = _joined().filter(id=parse_id(appointment_id), patient=patient).first()
    if not appointment:
        raise NotFound('Appointment not found')
    return appointment


@transaction.atomic
def update_patient_appointment(patient: User, appointment_id, *, status=None, appointment_date=None, appointment_time=None) -> Appointment:
    """Patients may cancel and reschedule their own appointments, nothing else."""
    appointment = _own_appointment(patient, appointment_id)
    fields = ['updated_at']

    if appointment_date or appointment_time:
        if appointment.status not in RESCHEDULABLE:
            raise InvalidTransition(f'Cannot reschedule a {appointment.status} appointment')
        if appointment_date:
            appointment.appointment_date = appointment_date
            fields.append('appointment_date')
        if appointment_time:
            appointment.appointment_time = appointment_time
            fields.append('appointment_time')

    if status and status != appointment.status:
        if status not in PATIENT_STATUSES:
            raise Forbidden('Patients can only cancel appointments')
        _apply_status(appointment, status, operator=patient, reason='patient update')
        fields.append('status')

    appointment.save(update_fields=fields)
    return _joined().get(id=appointment.id)


def delete_patient_appointment(patient: User, appointment_id) -> None:
    appointment = _own_appointment(patient, appointment_id)
    if appointment.status == COMPLETED:
        raise ValidationError('Cannot delete completed appointments')
    appointment.delete()
    logger.info('Appointment %s deleted by user %s', appointment_id, patient.id)


# ---------------------------------------------------------------------
# Privileged operations
# ---------------------------------------------------------------------
def list_center_appointments(user: User, center_id=None, *, status: Optional[str] = None,
                             page: Optional[int] = None, page_size: Optional[int] = None) -> tuple[DiagnosticCenter, list[dict], int]:
    center = resolve_center_for(user, center_id)
    qs = _joined().filter(center=center)
    if status:
        qs = qs.filter(status=status)
    total = qs.count()
    qs = qs.order_by('appointment_date', 'appointment_time', 'id')
    if page and page_size:
        start = (page - 1) * page_size
        qs = qs[start:start + page_size]
    return center, [format_appointment(a, with_patient=True) for a in qs], total


def _privileged_appointment(user: User, appointment_id, *, for_update: bool = False) -> Appointment:
    qs = Appointment.objects.select_for_update() if for_update else Appointment.objects.all()
    qs = qs.filter(id=parse_id(appointment_id))
    if user.role == User.ROLE_CENTER_ADMIN:
        qs = qs.filter(center__admin=user)
    elif user.role != User.ROLE_ADMIN:
        raise Forbidden()
    appointment = qs.first()
    if not appointment:
        raise NotFound('Appointment not found')
    return appointment


@transaction.atomic
def update_status(user: User, appointment_id, *, status: str, notes=None, cancellation_reason=None) -> Appointment:
    if status not in STATUSES:
        raise ValidationError(f'Unknown status: {status}')
    appointment = _privileged_appointment(user, appointment_id, for_update=True)
    reason = _clean(cancellation_reason) if cancellation_reason else ''
    _apply_status(appointment, status, operator=user, reason=reason or 'status update')
    if notes:
        appointment.notes = _clean(notes)
    if reason:
        appointment.cancellation_reason = reason
    appointment.save()
    return _joined().get(id=appointment.id)


def attach_results(user: User, appointment_id, file, *, summary: str = '', storage) -> Appointment:
    """Upload ``file`` through ``storage`` and complete the appointment.

    Ownership and the transition are checked before uploading so a
    rejected request leaves no report behind.  The row is only locked
    after the upload, so a status change that lands in between still
    rejects the request; the uploaded URL is then logged as orphaned.
    """
    if file is None or not appointment_id:
        raise ValidationError('File and appointmentId are required.')
    validate_report_file(file)
    appointment = _privileged_appointment(user, appointment_id)
    if not can_transition(appointment.status, COMPLETED):
        raise InvalidTransition(f'Cannot attach results to a {appointment.status} appointment')

    url = storage.upload(file)

    try:
        with transaction.atomic():
            appointment = _privileged_appointment(user, appointment.id, for_update=True)
            _apply_status(appointment, COMPLETED, operator=user, reason='results uploaded')
            appointment.report_url = url
            appointment.result_summary = _clean(summary)
            appointment.result_uploaded_at = timezone.now()
            appointment.save()
    except (InvalidTransition, NotFound):
        logger.warning('Report %s orphaned: appointment %s changed during upload', url, appointment.id)
        raise
    logger.info('Results attached to appointment %s by user %s', appointment.id, user.id)
    return _joined().get(id=appointment.id)
