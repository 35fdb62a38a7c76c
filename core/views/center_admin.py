"""
Endpoints for diagnostic center administrators.

Every view resolves the caller's own center first, so a center admin
can never read or modify another center's tests or appointments.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.apps import result_storage
from core.serializers.appointments import ResultsUploadSerializer
from core.serializers.centers import DiagnosticTestSerializer
from core.services import appointments as appointment_svc
from core.services import centers as svc
from core.services.appointments import format_appointment
from core.services.centers import format_test, resolve_center_for

from ..permissions import IsCenterAdminRole


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsCenterAdminRole])
def dashboard(request):
    center = resolve_center_for(request.user)
    return Response({'success': True, **svc.dashboard(center)})


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsCenterAdminRole])
def tests(request):
    center = resolve_center_for(request.user)
    if request.method == 'POST':
        s = DiagnosticTestSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        test = svc.add_test(center, s.to_model_fields())
        return Response({'success': True, 'message': 'Test added successfully', 'test': format_test(test)}, status=201)
    data = [format_test(t) for t in center.tests.filter(is_active=True).order_by('name')]
    return Response({'success': True, 'count': len(data), 'tests': data})


@api_view(['PUT', 'DELETE'])
@permission_classes([IsAuthenticated, IsCenterAdminRole])
def test_detail(request, test_id):
    center = resolve_center_for(request.user)
    if request.method == 'DELETE':
        svc.deactivate_test(center, test_id)
        return Response({'success': True, 'message': 'Test deleted successfully'})
    s = DiagnosticTestSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    test = svc.update_test(center, test_id, s.to_model_fields())
    return Response({'success': True, 'message': 'Test updated successfully', 'test': format_test(test)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsCenterAdminRole])
def upload_results(request):
    """Attach a report file to an appointment of the caller's center and complete it."""
    s = ResultsUploadSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    appointment = appointment_svc.attach_results(
        request.user,
        s.validated_data.get('appointmentId'),
        request.FILES.get('file'),
        summary=s.validated_data.get('summary', ''),
        storage=result_storage(),
    )
    return Response({
        'success': True,
        'message': 'Test results uploaded successfully',
        'appointment': format_appointment(appointment, with_patient=True),
    })
