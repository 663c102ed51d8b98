"""Demo accounts for local development and front-end smoke testing."""
from __future__ import annotations

import logging

from django.conf import settings
from django.contrib.auth import get_user_model

logger = logging.getLogger(__name__)

User = get_user_model()

DEMO_USERS = [
    ("Admin User", "admin@hostel.com", "admin"),
    ("Warden User", "warden@hostel.com", "warden"),
    ("Student User", "student@hostel.com", "resident"),
]


def seed_demo_users(password: str | None = None) -> list:
    """Create any missing demo user.  Existing accounts are left alone."""
    password = password or settings.DEMO_PASSWORD
    created = []
    for name, email, role in DEMO_USERS:
        if User.objects.filter(email=email).exists():
            continue
        created.append(User.objects.create_user(email=email, password=password, name=name, role=role))
        logger.info('Demo user %s (%s) created', email, role)
    return created
