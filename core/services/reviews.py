"""
Reviews of completed appointments.

Each mutation runs in its own transaction; the receivers in
:mod:`core.signals` recompute the center aggregate and drop the cached
per-center listing inside it, so a failed recompute rolls the review
change back.
"""
from __future__ import annotations

import logging

import bleach
from django.conf import settings
from django.core.cache import cache
from django.db import IntegrityError, transaction

from core.exceptions import Conflict, Forbidden, NotFound, ValidationError
from core.models import Appointment, DiagnosticCenter, Review, User
from core.services.ids import parse_id

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = 'You have already reviewed this appointment'


def cache_key(center_id: int) -> str:
    return f"reviews:center:{center_id}"


def format_review(r: Review, *, with_center: bool = False) -> dict:
    data = {
        'id': r.id,
        'rating': r.rating,
        'comment': r.comment,
        'appointmentId': r.appointment_id,
        'user': {'id': r.user.id, 'name': r.user.display_name},
        'createdAt': r.created_at.isoformat() if r.created_at else None,
        'updatedAt': r.updated_at.isoformat() if r.updated_at else None,
    }
    if with_center:
        data['user']['email'] = r.user.email
        data['center'] = {'id': r.center.id, 'name': r.center.name}
        data['appointmentDate'] = r.appointment.appointment_date.isoformat()
    return data


def _validate_rating(rating) -> int:
    try:
        value = int(rating)
    except (TypeError, ValueError):
        raise ValidationError('Rating must be an integer between 1 and 5')
    if not 1 <= value <= 5:
        raise ValidationError('Rating must be an integer between 1 and 5')
    return value


def create_review(user: User, *, appointment_id, rating, comment: str = '') -> Review:
    if not appointment_id or rating is None:
        raise ValidationError('Appointment ID and rating are required')
    rating = _validate_rating(rating)
    appointment = Appointment.objects.filter(id=parse_id(appointment_id)).first()
    if not appointment:
        raise NotFound('Appointment not found')
    if appointment.patient_id != user.id:
        raise Forbidden('You can only review your own appointments')
    if appointment.status != Appointment.STATUS_COMPLETED:
        raise ValidationError('You can only review completed appointments')
    if Review.objects.filter(user=user, appointment=appointment).exists():
        raise Conflict(DUPLICATE_MESSAGE)

    try:
        with transaction.atomic():
            review = Review.objects.create(
                user=user,
                appointment=appointment,
                center_id=appointment.center_id,
                rating=rating,
                comment=bleach.clean(comment or '', strip=True),
            )
    except IntegrityError:
        raise Conflict(DUPLICATE_MESSAGE)
    logger.info('Review %s created by user %s for center %s', review.id, user.id, review.center_id)
    return Review.objects.select_related('user').get(id=review.id)


def _own_review(user: User, review_id) -> Review:
    review = Review.objects.select_related('user').filter(id=parse_id(review_id, 'review')).first()
    if not review:
        raise NotFound('Review not found')
    if review.user_id != user.id:
        raise Forbidden('You can only modify your own reviews')
    return review


def update_review(user: User, review_id, *, rating=None, comment=None) -> Review:
    review = _own_review(user, review_id)
    if rating is not None:
        review.rating = _validate_rating(rating)
    if comment is not None:
        review.comment = bleach.clean(comment, strip=True)
    with transaction.atomic():
        review.save()
    return review


def delete_review(user: User, review_id) -> None:
    review = _own_review(user, review_id)
    with transaction.atomic():
        review.delete()
    logger.info('Review %s deleted by user %s', review_id, user.id)


def list_center_reviews(center_id) -> list[dict]:
    pk = parse_id(center_id, 'center')
    cached = cache.get(cache_key(pk))
    if cached is not None:
        return cached
    if not DiagnosticCenter.objects.filter(id=pk).exists():
        raise NotFound('Diagnostic center not found')
    qs = Review.objects.select_related('user').filter(center_id=pk).order_by('-created_at', '-id')
    data = [format_review(r) for r in qs]
    cache.set(cache_key(pk), data, settings.REVIEWS_CACHE_SECONDS)
    return data


def list_all_reviews() -> list[dict]:
    qs = Review.objects.select_related('user', 'center', 'appointment').order_by('-created_at', '-id')
    return [format_review(r, with_center=True) for r in qs]
