"""
URL mappings for the MedBook API.

Every endpoint lives under ``/api/`` and, like the front-end expects,
has no trailing slash.  Literal segments such as ``my-appointments`` and
``center`` are listed before the ``<appointment_id>`` catch-alls so
they are never swallowed by them.
"""
from django.urls import include, path

from .auth_views import (
    forgot_password_view,
    login_view,
    profile_view,
    refresh_view,
    register_view,
    reset_password_view,
    verify_registration_view,
)
from .views import appointments, center_admin, centers, health, reviews

urlpatterns = [
    # Auth
    path('api/auth/register', register_view, name='register'),
    path('api/auth/verify-registration-otp', verify_registration_view, name='verify_registration_otp'),
    path('api/auth/forgot-password', forgot_password_view, name='forgot_password'),
    path('api/auth/reset-password', reset_password_view, name='reset_password'),
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/refresh', refresh_view, name='token_refresh'),
    path('api/auth/profile', profile_view, name='profile'),

    # Appointments
    path('api/appointments', appointments.create_appointment, name='appointment_create'),
    path('api/appointments/my-appointments', appointments.my_appointments, name='my_appointments'),
    path('api/appointments/my-results', appointments.my_results, name='my_results'),
    path('api/appointments/center', appointments.center_appointments, name='center_appointments'),
    path('api/appointments/center/<str:center_id>', appointments.center_appointments, name='center_appointments_by_id'),
    path('api/appointments/<str:appointment_id>/status', appointments.update_status, name='appointment_status'),
    path('api/appointments/<str:appointment_id>', appointments.appointment_detail, name='appointment_detail'),

    # Reviews
    path('api/reviews', reviews.create_review, name='review_create'),
    path('api/reviews/admin/all', reviews.all_reviews, name='all_reviews'),
    path('api/reviews/center/<str:center_id>', reviews.center_reviews, name='center_reviews'),
    path('api/reviews/<str:review_id>', reviews.review_detail, name='review_detail'),

    # Centers catalogue
    path('api/centers', centers.centers, name='centers'),
    path('api/centers/<str:center_id>', centers.center_detail, name='center_detail'),
    path('api/centers/<str:center_id>/tests', centers.center_tests, name='center_tests'),

    # Center administration
    path('api/center-admin/dashboard', center_admin.dashboard, name='center_admin_dashboard'),
    path('api/center-admin/tests', center_admin.tests, name='center_admin_tests'),
    path('api/center-admin/tests/<str:test_id>', center_admin.test_detail, name='center_admin_test_detail'),
    path('api/center-admin/results', center_admin.upload_results, name='center_admin_results'),

    # Ops
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz, name='healthz'),
]
