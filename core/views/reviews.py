from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from core.serializers.reviews import ReviewCreateSerializer, ReviewUpdateSerializer
from core.services import reviews as svc
from core.services.reviews import format_review

from ..permissions import IsAdminRole, IsPatientRole


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsPatientRole])
def create_review(request):
    s = ReviewCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    review = svc.create_review(
        request.user,
        appointment_id=v.get('appointmentId'),
        rating=v.get('rating'),
        comment=v.get('comment', ''),
    )
    return Response({'success': True, 'message': 'Review submitted successfully', 'review': format_review(review)}, status=201)


@api_view(['PUT', 'DELETE'])
@permission_classes([IsAuthenticated, IsPatientRole])
def review_detail(request, review_id):
    if request.method == 'DELETE':
        svc.delete_review(request.user, review_id)
        return Response({'success': True, 'message': 'Review deleted successfully'})
    s = ReviewUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    review = svc.update_review(request.user, review_id, rating=s.validated_data.get('rating'),
                               comment=s.validated_data.get('comment'))
    return Response({'success': True, 'message': 'Review updated successfully', 'review': format_review(review)})


@api_view(['GET'])
@permission_classes([AllowAny])
def center_reviews(request, center_id):
    data = svc.list_center_reviews(center_id)
    return Response({'success': True, 'count': len(data), 'reviews': data})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def all_reviews(request):
    data = svc.list_all_reviews()
    return Response({'success': True, 'count': len(data), 'reviews': data})
