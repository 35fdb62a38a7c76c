import logging
from typing import Optional

from django.db import transaction
from django.db.models import Avg, Count

from core.models import DiagnosticCenter, Review

logger = logging.getLogger(__name__)


def recompute_center_rating(center_id: int) -> Optional[DiagnosticCenter]:
    """Re-derive ``rating`` and ``total_reviews`` from the center's reviews.

    The center row is locked for the duration of the enclosing transaction
    so concurrent recomputes for one center serialize.  Returns ``None``
    when the center no longer exists.
    """
    with transaction.atomic():
        center = DiagnosticCenter.objects.select_for_update().filter(id=center_id).first()
        if center is None:
            return None
        agg = Review.objects.filter(center_id=center_id).aggregate(avg=Avg('rating'), n=Count('id'))
        center.rating = float(agg['avg']) if agg['n'] else 0
        center.total_reviews = agg['n']
        center.save(update_fields=['rating', 'total_reviews', 'updated_at'])
    logger.info('Center %s rating recomputed: %s from %s reviews', center_id, center.rating, center.total_reviews)
    return center


def recompute_all_ratings(center_id: Optional[int] = None) -> int:
    """Recompute every center (or just ``center_id``); returns how many were updated."""
    ids = DiagnosticCenter.objects.order_by('id').values_list('id', flat=True)
    if center_id is not None:
        ids = ids.filter(id=center_id)
    updated = 0
    for pk in list(ids):
        if recompute_center_rating(pk) is not None:
            updated += 1
    return updated
