import pytest
from django.contrib import admin
from django.core.cache import cache
from django.test import RequestFactory

from core.admin import AppointmentAdmin, ReviewAdmin
from core.models import Appointment, Review, User
from core.services.reviews import cache_key
from core.tests.utils import make_appointment, make_user

pytestmark = pytest.mark.django_db


@pytest.fixture
def admin_request(db):
    boss = make_user('boss@example.com', User.ROLE_ADMIN)
    boss.is_staff = boss.is_superuser = True
    boss.save()
    request = RequestFactory().post('/admin/')
    request.user = boss
    return request


@pytest.fixture
def review(patient, completed_appointment, center):
    r = Review.objects.create(user=patient, appointment=completed_appointment, center=center, rating=5)
    center.refresh_from_db()
    assert (center.rating, center.total_reviews) == (5, 1)
    return r


# ---------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------
def test_bulk_delete_resets_center_rating(admin_request, review, center):
    cache.set(cache_key(center.id), ['stale'])
    ReviewAdmin(Review, admin.site).delete_queryset(admin_request, Review.objects.all())
    center.refresh_from_db()
    assert (center.rating, center.total_reviews) == (0, 0)
    assert cache.get(cache_key(center.id)) is None


def test_single_delete_resets_center_rating(admin_request, review, center):
    ReviewAdmin(Review, admin.site).delete_model(admin_request, review)
    center.refresh_from_db()
    assert (center.rating, center.total_reviews) == (0, 0)


def test_edited_rating_is_recomputed(admin_request, review, center):
    cache.set(cache_key(center.id), ['stale'])
    review.rating = 1
    ReviewAdmin(Review, admin.site).save_model(admin_request, review, form=None, change=True)
    center.refresh_from_db()
    assert (center.rating, center.total_reviews) == (1, 1)
    assert cache.get(cache_key(center.id)) is None


def test_review_links_are_read_only(admin_request, review):
    ma = ReviewAdmin(Review, admin.site)
    assert {'user', 'appointment', 'center'} <= set(ma.get_readonly_fields(admin_request, review))
    assert not ma.has_add_permission(admin_request)


# ---------------------------------------------------------------------
# Appointments
# ---------------------------------------------------------------------
def test_status_and_results_are_not_editable(admin_request, completed_appointment):
    ma = AppointmentAdmin(Appointment, admin.site)
    form = ma.get_form(admin_request, completed_appointment)
    for field in ('status', 'report_url', 'result_summary', 'result_uploaded_at', 'total_amount'):
        assert field not in form.base_fields
    assert not ma.has_add_permission(admin_request)


def test_completed_appointment_cannot_be_deleted(admin_request, patient, blood_test, completed_appointment):
    ma = AppointmentAdmin(Appointment, admin.site)
    scheduled = make_appointment(patient, blood_test)
    assert not ma.has_delete_permission(admin_request, completed_appointment)
    assert ma.has_delete_permission(admin_request, scheduled)


def test_bulk_delete_skips_completed(admin_request, patient, blood_test, completed_appointment):
    scheduled = make_appointment(patient, blood_test)
    AppointmentAdmin(Appointment, admin.site).delete_queryset(admin_request, Appointment.objects.all())
    assert list(Appointment.objects.values_list('id', flat=True)) == [completed_appointment.id]
    assert not Appointment.objects.filter(id=scheduled.id).exists()
