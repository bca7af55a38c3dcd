"""
FarmTrack — Root conftest for pytest

Shared fixtures available to all test modules. Every role fixture belongs
to the same ``farm``; ``outsider`` is a manager of a different farm.

@file conftest.py
"""

import pytest
from rest_framework.test import APIClient

from tests.factories import (
    FarmFactory,
    ManagerFactory,
    OwnerFactory,
    SuperuserFactory,
    WorkerFactory,
)


@pytest.fixture
def api_client():
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture
def farm(db):
    return FarmFactory()


@pytest.fixture
def owner(farm):
    """Farm owner with default password TestPass2026!"""
    return OwnerFactory(farm=farm)


@pytest.fixture
def manager(farm):
    return ManagerFactory(farm=farm)


@pytest.fixture
def worker(farm):
    return WorkerFactory(farm=farm)


@pytest.fixture
def outsider(db):
    """Manager of another farm."""
    return ManagerFactory()


@pytest.fixture
def admin_user(db):
    """Superuser with no farm."""
    return SuperuserFactory()


def _client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def owner_client(owner):
    return _client_for(owner)


@pytest.fixture
def manager_client(manager):
    return _client_for(manager)


@pytest.fixture
def worker_client(worker):
    return _client_for(worker)


@pytest.fixture
def outsider_client(outsider):
    return _client_for(outsider)


@pytest.fixture
def admin_client(admin_user):
    """API client authenticated as a superuser without a farm."""
    return _client_for(admin_user)
