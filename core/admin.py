"""
Django admin registrations for the core models.

Superusers can inspect users, centers, tests, appointments and reviews
via ``/admin/``.  A center's ``rating`` and ``total_reviews`` are shown
read-only; they are derived from reviews.  Appointment status and results
only change through the API so every move is checked against the
transition table and audited.
"""

import logging

from django.contrib import admin

from .models import (
    Appointment,
    AppointmentTransition,
    DiagnosticCenter,
    DiagnosticTest,
    Review,
    User,
)

logger = logging.getLogger(__name__)


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('email', 'name', 'role', 'is_email_verified', 'is_staff', 'is_superuser')
    list_filter = ('role', 'is_email_verified')
    search_fields = ('email', 'name', 'phone')
    exclude = ('otp_code',)


@admin.register(DiagnosticCenter)
class DiagnosticCenterAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'admin', 'is_active', 'rating', 'total_reviews')
    list_filter = ('is_active',)
    search_fields = ('name', 'email')
    readonly_fields = ('rating', 'total_reviews')


@admin.register(DiagnosticTest)
class DiagnosticTestAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'center', 'category', 'price', 'duration', 'is_active')
    list_filter = ('is_active', 'category', 'center')
    search_fields = ('name',)


class AppointmentTransitionInline(admin.TabularInline):
    model = AppointmentTransition
    extra = 0
    readonly_fields = ('from_status', 'to_status', 'operator', 'reason', 'timestamp')
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'center', 'test', 'appointment_date', 'appointment_time', 'status', 'total_amount')
    list_filter = ('status', 'center')
    search_fields = ('patient__email', 'patient__name')
    inlines = [AppointmentTransitionInline]
    readonly_fields = ('status', 'total_amount', 'report_url', 'result_summary', 'result_uploaded_at')

    def has_add_permission(self, request):
        # Bookings snapshot the test price through the API
        return False

    def has_delete_permission(self, request, obj=None):
        if obj is not None and obj.status == Appointment.STATUS_COMPLETED:
            return False
        return super().has_delete_permission(request, obj)

    def delete_queryset(self, request, queryset):
        completed = queryset.filter(status=Appointment.STATUS_COMPLETED)
        if completed.exists():
            logger.warning('Admin %s: skipped deleting completed appointments %s',
                           request.user.id, list(completed.values_list('id', flat=True)))
        super().delete_queryset(request, queryset.exclude(status=Appointment.STATUS_COMPLETED))


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'center', 'rating', 'created_at')
    list_filter = ('rating', 'center')
    search_fields = ('user__email', 'comment')
    # Rating and comment only; the center aggregate follows via core.signals
    readonly_fields = ('user', 'appointment', 'center')

    def has_add_permission(self, request):
        return False
