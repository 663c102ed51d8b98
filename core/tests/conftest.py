import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from .factories import make_campus


@pytest.fixture(autouse=True)
def _clear_throttle_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def campus(db):
    return make_campus()
