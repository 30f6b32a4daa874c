"""Shared fixtures for API tests that need a finished onboarding."""

import pytest

from portal.providers.store.base import Collection
from portal.providers.store.mock_adapter import MockDataStore
from tests.conftest import TEST_USER_ID


@pytest.fixture
def onboarded(data_store: MockDataStore) -> MockDataStore:
    """Seed rows for TEST_USER_ID with onboarding already completed."""
    data_store.seed(
        Collection.USER_ONBOARDING,
        {
            "user_id": TEST_USER_ID,
            "selected_roles": ["frontend"],
            "completed_steps": ["welcome", "personal", "roles"],
            "completed": True,
        },
    )
    return data_store
