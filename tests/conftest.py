"""Global test fixtures for routinely tests"""
import pytest
from datetime import datetime

from routinely.services import ServiceContainer
from routinely.storage import InMemoryStore
from tests.helpers import FixedClock, TEST_TZ


# ============================================================================
# Clock & Store Fixtures
# ============================================================================

@pytest.fixture
def clock():
    """Wednesday 2026-10-14 09:30 local time"""
    return FixedClock(datetime(2026, 10, 14, 9, 30, tzinfo=TEST_TZ))


@pytest.fixture
def store():
    """Empty in-memory store"""
    return InMemoryStore()


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest.fixture
def container(store, clock):
    """Service container wired to the in-memory store and fixed clock"""
    return ServiceContainer(store=store, clock=clock)


@pytest.fixture
def routine_store(container):
    return container.routine_store


@pytest.fixture
def engine(container):
    return container.completion_engine
