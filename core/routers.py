"""
URL mappings for the hospital API.

Trailing slashes are omitted throughout.  Literal segments such as
``my`` are registered before the ``<str:code>`` routes they would
otherwise be swallowed by.
"""
from django.urls import include, path

from .auth_views import login_view, refresh_view, register_view
from .views import appointments, doctors, health, lab, users

urlpatterns = [
    path('healthz', health.healthz),
    path('', include('django_prometheus.urls')),

    # Auth
    path('api/auth/register', register_view, name='register_view'),
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/refresh', refresh_view, name='refresh_view'),

    # Accounts
    path('api/users/me', users.me),
    path('api/admin/users', users.admin_users),
    path('api/admin/users/staff', users.admin_create_staff),
    path('api/admin/users/patients', users.admin_create_patient),
    path('api/admin/users/<int:pk>', users.admin_update_patient),
    path('api/admin/users/<int:pk>/confirm', users.admin_confirm_user),
    path('api/admin/users/<int:pk>/role', users.admin_update_role),

    # Doctor directory
    path('api/doctors', doctors.doctors),
    path('api/doctors/confirmed', doctors.confirmed_doctors),
    path('api/doctors/<int:pk>', doctors.doctor_detail),
    path('api/specializations', doctors.specializations),

    # Appointments
    path('api/admin/appointments', appointments.admin_appointments),
    path('api/admin/appointments/<int:pk>', appointments.admin_appointment_detail),
    path('api/appointments', appointments.book_appointment),
    path('api/appointments/my', appointments.my_appointments),
    path('api/appointments/<int:pk>/cancel', appointments.cancel_my_appointment),

    # Laboratory
    path('api/doctor/lab-requests', lab.doctor_lab_requests),
    path('api/doctor/lab-requests/<str:code>', lab.doctor_lab_request_detail),
    path('api/lab/requests', lab.lab_queue),
    path('api/lab/requests/<str:code>', lab.lab_queue_item),
    path('api/lab/requests/<str:code>/sample-collected', lab.lab_mark_sample_collected),
    path('api/lab/requests/<str:code>/complete', lab.lab_complete),
    path('api/lab/reports/my', lab.my_lab_reports),
    path('api/lab/reports/<str:code>', lab.my_lab_report_detail),
]
