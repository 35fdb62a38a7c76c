"""
Public diagnostic center catalogue plus administrator maintenance.
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from core.serializers.centers import CenterSerializer
from core.services import centers as svc
from core.services.centers import format_center

from ..permissions import IsAdminOrReadOnly


@api_view(['GET', 'POST'])
@permission_classes([IsAdminOrReadOnly])
def centers(request):
    if request.method == 'POST':
        s = CenterSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        center = svc.create_center(s.to_model_fields())
        return Response({'success': True, 'center': format_center(center)}, status=201)
    data = svc.list_centers(q=request.query_params.get('q'))
    return Response({'success': True, 'count': len(data), 'centers': data})


@api_view(['GET', 'PUT'])
@permission_classes([IsAdminOrReadOnly])
def center_detail(request, center_id):
    if request.method == 'PUT':
        center = svc.get_center(center_id, active_only=False)
        s = CenterSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        center = svc.update_center(center, s.to_model_fields())
        return Response({'success': True, 'center': format_center(center)})
    center = svc.get_center(center_id)
    return Response({'success': True, 'center': format_center(center)})


@api_view(['GET'])
@permission_classes([AllowAny])
def center_tests(request, center_id):
    center = svc.get_center(center_id)
    data = svc.list_center_tests(center)
    return Response({'success': True, 'count': len(data), 'tests': data})
