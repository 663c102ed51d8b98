"""Core application for the hostel backend.

This package contains models, principal resolution, scope filters and
mutation guards, serializers, views and route registrations for the
hostel management API.
"""
