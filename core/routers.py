"""
URL mappings for the hostel backend API.

Paths carry no trailing slash.  Collection endpoints that accept both
GET and POST map to a single view which dispatches on the method.
"""
from django.urls import path, include

from .auth_views import (
    jwt_logout_view,
    jwt_refresh_view,
    login_view,
    me_view,
    register_view,
    seed_demo_users_view,
)
from .views import attendance, complaints, dashboard, health, hostels, rooms, users

urlpatterns = [
    path('metrics', include('django_prometheus.urls')),
    path('ping', health.ping, name='ping'),
    path('healthz', health.healthz, name='healthz'),

    # Auth
    path('auth/register', register_view, name='register_view'),
    path('auth/login', login_view, name='login_view'),
    path('auth/me', me_view, name='me_view'),
    path('auth/refresh', jwt_refresh_view, name='jwt_refresh_view'),
    path('auth/logout', jwt_logout_view, name='jwt_logout_view'),
    path('auth/seed-demo-users', seed_demo_users_view, name='seed_demo_users_view'),

    # Users
    path('users', users.list_users, name='users'),
    path('users/<int:user_id>', users.update_user_view, name='user_detail'),

    # Hostels & rooms
    path('hostels', hostels.hostels, name='hostels'),
    path('hostels/<int:hostel_id>/assign-warden', hostels.assign_warden_view, name='assign_warden'),
    path('rooms', rooms.rooms, name='rooms'),
    path('rooms/<int:room_id>/allocate', rooms.allocate_room_view, name='allocate_room'),

    # Attendance & complaints
    path('attendance', attendance.attendance, name='attendance'),
    path('complaints', complaints.complaints, name='complaints'),
    path('complaints/<int:complaint_id>', complaints.update_complaint_view, name='complaint_detail'),

    # Dashboard
    path('dashboard/stats', dashboard.stats, name='dashboard_stats'),
    path('dashboard/warden-stats', dashboard.warden_stats_view, name='dashboard_warden_stats'),
    path('dashboard/resident-stats', dashboard.resident_stats_view, name='dashboard_resident_stats'),
]
