"""
WMS — Root conftest for pytest

Shared fixtures available to all test modules.

@file conftest.py
"""

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from tests.factories import (
    AdminFactory,
    LocationFactory,
    ManagerFactory,
    StockRecordFactory,
    SuperuserFactory,
    UserFactory,
    WarehouseFactory,
)


@pytest.fixture(autouse=True)
def _clear_cache():
    """The status definition list is cached; start every test cold."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture
def user(db):
    """STAFF user with default password TestPass2026!"""
    return UserFactory()


@pytest.fixture
def manager(db):
    return ManagerFactory()


@pytest.fixture
def admin(db):
    """User holding the ADMIN role (not a superuser)."""
    return AdminFactory()


@pytest.fixture
def superuser(db):
    return SuperuserFactory()


@pytest.fixture
def authenticated_client(api_client, user):
    """API client authenticated as a STAFF user."""
    api_client.force_authenticate(user=user)
    return api_client


@pytest.fixture
def manager_client(api_client, manager):
    api_client.force_authenticate(user=manager)
    return api_client


@pytest.fixture
def admin_client(api_client, admin):
    """API client authenticated as an ADMIN."""
    api_client.force_authenticate(user=admin)
    return api_client


@pytest.fixture
def warehouse(db):
    return WarehouseFactory(code='WH-A')


@pytest.fixture
def other_warehouse(db):
    return WarehouseFactory(code='WH-B')


@pytest.fixture
def source_location(warehouse):
    return LocationFactory(warehouse=warehouse, lot='01', cart='01', level=1)


@pytest.fixture
def target_location(warehouse):
    return LocationFactory(warehouse=warehouse, lot='02', cart='03', level=2)


@pytest.fixture
def stock(source_location):
    """Ten units of a fresh product at L01-P01-Z01."""
    return StockRecordFactory(location=source_location, quantity=10)
