"""Shared test fixtures for the Payana test suite."""

import httpx
import pytest
from fake_service import FakeRideService

from payana.config.settings import Settings
from payana.services.payana_client import PayanaClient
from payana.services.snapshot import SnapshotStore
from payana.shared.session import RideSession


@pytest.fixture
def settings() -> Settings:
    """Provide test settings with safe defaults.

    Returns:
        Settings pointing at the fake service with no debounce delay.
    """
    return Settings(
        backend_url="http://payana.test",
        geo_debounce_seconds=0.0,
        refresh_interval_seconds=0.01,
    )


@pytest.fixture
def fake_service() -> FakeRideService:
    """Provide a fresh in-memory ride service."""
    return FakeRideService()


@pytest.fixture
def client(fake_service: FakeRideService, settings: Settings) -> PayanaClient:
    """Provide a PayanaClient wired to the fake service."""
    return PayanaClient.from_settings(
        settings,
        transport=httpx.ASGITransport(app=fake_service.app),
    )


@pytest.fixture
def store(client: PayanaClient) -> SnapshotStore:
    """Provide an empty snapshot store."""
    return SnapshotStore(client)


@pytest.fixture
def session() -> RideSession:
    """Provide an empty session."""
    return RideSession()
