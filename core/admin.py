"""
Django admin registrations for the core models.

Lab requests show their ordered tests inline so that a superuser can
check recorded results without leaving the request page.
"""

from django.contrib import admin

from .models import (
    Appointment,
    AuditEvent,
    Doctor,
    LabRequest,
    LabRequestTest,
    User,
)


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('email', 'first_name', 'last_name', 'role', 'status', 'is_confirmed')
    list_filter = ('role', 'status', 'is_confirmed')
    search_fields = ('email', 'first_name', 'last_name', 'phone')


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = ('id', 'full_name', 'slmc_number', 'specialization_id', 'user')
    list_filter = ('specialization_id',)
    search_fields = ('full_name', 'slmc_number', 'email')


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'doctor', 'date', 'time_slot', 'queue_number', 'patient_name', 'status')
    list_filter = ('status', 'date')
    search_fields = ('id', 'patient_name', 'contact_number', 'doctor__full_name')


class LabRequestTestInline(admin.TabularInline):
    model = LabRequestTest
    extra = 0


@admin.register(LabRequest)
class LabRequestAdmin(admin.ModelAdmin):
    list_display = ('code', 'patient_name', 'doctor_user', 'status', 'created_at', 'technician_name')
    list_filter = ('status',)
    search_fields = ('code', 'patient_name', 'doctor_user__email')
    inlines = [LabRequestTestInline]


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'action', 'object_type', 'object_id', 'created_at')
    list_filter = ('action', 'object_type')
    search_fields = ('action', 'object_type', 'user__email')
