import pytest
from django.core.cache import cache
from django.core.management import CommandError, call_command

from core.models import DiagnosticCenter, Review
from core.services.reviews import cache_key
from core.tests.utils import make_appointment, make_center

pytestmark = pytest.mark.django_db


def test_recompute_ratings_repairs_drift(patient, other_patient, blood_test, center):
    for user, rating in ((patient, 5), (other_patient, 3)):
        a = make_appointment(user, blood_test, status='completed')
        Review.objects.create(user=user, appointment=a, center=center, rating=rating)
    # Queryset updates skip the review signals and leave the aggregate stale
    DiagnosticCenter.objects.filter(id=center.id).update(rating=1, total_reviews=7)
    cache.set(cache_key(center.id), ['stale'])

    call_command('recompute_ratings')

    center.refresh_from_db()
    assert (center.rating, center.total_reviews) == (4, 2)
    assert cache.get(cache_key(center.id)) is None


def test_recompute_single_center(center, db):
    other = make_center('Lakeside Imaging')
    DiagnosticCenter.objects.filter(id__in=[center.id, other.id]).update(rating=2, total_reviews=1)
    call_command('recompute_ratings', center=center.id)
    center.refresh_from_db()
    other.refresh_from_db()
    assert (center.rating, center.total_reviews) == (0, 0)
    assert (other.rating, other.total_reviews) == (2, 1)


def test_recompute_unknown_center(db):
    with pytest.raises(CommandError):
        call_command('recompute_ratings', center=123456)


def test_populate_data_builds_consistent_ratings(db):
    call_command('populate_data')
    assert DiagnosticCenter.objects.count() == 2
    for center in DiagnosticCenter.objects.all():
        ratings = list(center.reviews.values_list('rating', flat=True))
        assert center.total_reviews == len(ratings)
        if ratings:
            assert center.rating == pytest.approx(sum(ratings) / len(ratings), abs=0.01)
        else:
            assert center.rating == 0
