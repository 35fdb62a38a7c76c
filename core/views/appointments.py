"""
Appointment endpoints.

Patients book, list, reschedule, cancel and delete their own
appointments.  Center administrators and system administrators list a
center's appointments and move them through the status table in
:mod:`core.services.appointments`.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.serializers.appointments import (
    AppointmentCreateSerializer,
    AppointmentStatusSerializer,
    CenterAppointmentQuerySerializer,
    PatientAppointmentUpdateSerializer,
)
from core.services import appointments as svc
from core.services.appointments import format_appointment

from ..permissions import IsAdminOrCenterAdmin, IsPatientRole


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsPatientRole])
def create_appointment(request):
    s = AppointmentCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    appointment = svc.create_appointment(
        request.user,
        center_id=v.get('center'),
        test_id=v.get('test'),
        appointment_date=v.get('appointmentDate'),
        appointment_time=v.get('appointmentTime'),
        notes=v.get('notes', ''),
    )
    return Response({
        'success': True,
        'message': 'Appointment booked successfully',
        'appointment': format_appointment(appointment),
    }, status=201)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPatientRole])
def my_appointments(request):
    data = svc.list_patient_appointments(request.user)
    return Response({'success': True, 'count': len(data), 'appointments': data})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPatientRole])
def my_results(request):
    data = svc.list_patient_appointments(request.user, statuses=svc.RESULT_STATUSES)
    return Response({'success': True, 'count': len(data), 'appointments': data})


@api_view(['PUT', 'DELETE'])
@permission_classes([IsAuthenticated, IsPatientRole])
def appointment_detail(request, appointment_id):
    if request.method == 'DELETE':
        svc.delete_patient_appointment(request.user, appointment_id)
        return Response({'success': True, 'message': 'Appointment deleted successfully'})

    s = PatientAppointmentUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    appointment = svc.update_patient_appointment(
        request.user,
        appointment_id,
        status=v.get('status'),
        appointment_date=v.get('appointmentDate'),
        appointment_time=v.get('appointmentTime'),
    )
    return Response({
        'success': True,
        'message': 'Appointment updated successfully',
        'appointment': format_appointment(appointment),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminOrCenterAdmin])
def center_appointments(request, center_id=None):
    """List one center's appointments.

    A center admin always gets their own center; an admin names it either
    in the path or with ``?centerId=``.
    """
    q = CenterAppointmentQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    v = q.validated_data
    page = v.get('page') or 1
    page_size = v.get('pageSize') or 0
    center, data, total = svc.list_center_appointments(
        request.user,
        center_id or v.get('centerId'),
        status=v.get('status'),
        page=page if page_size else None,
        page_size=page_size or None,
    )
    return Response({
        'success': True,
        'center': {'id': center.id, 'name': center.name},
        'count': len(data),
        'total': total,
        'appointments': data,
    })


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsAdminOrCenterAdmin])
def update_status(request, appointment_id):
    s = AppointmentStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    appointment = svc.update_status(
        request.user,
        appointment_id,
        status=v['status'],
        notes=v.get('notes'),
        cancellation_reason=v.get('cancellationReason'),
    )
    return Response({
        'success': True,
        'message': 'Appointment status updated successfully',
        'appointment': format_appointment(appointment, with_patient=True),
    })
