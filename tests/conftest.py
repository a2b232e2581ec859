"""
Pytest configuration and shared fixtures.

Adds the project root to the Python path so tests can import domain,
repositories, services and api. Service fixtures run against the in-memory
store; nothing here needs a database.
"""

from __future__ import annotations

import sys
from decimal import Decimal
from pathlib import Path
from uuid import uuid4

import pytest

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from domain.land_plot import LandPlot, PlotStatus, SizeUnit  # noqa: E402
from domain.time import utc_now  # noqa: E402
from domain.user import Role, User  # noqa: E402
from repositories.memory_store import InMemoryRegistryStore  # noqa: E402
from services.container import RegistryServices, build_services  # noqa: E402
from services.settings import Settings  # noqa: E402

TEST_PASSWORD = "secret123"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        default_commission_rate=Decimal("0.10"),
        jwt_secret="test-secret-key-for-the-land-registry",
        bcrypt_rounds=4,
        store_backend="memory",
    )


@pytest.fixture
def store() -> InMemoryRegistryStore:
    return InMemoryRegistryStore()


@pytest.fixture
def services(settings: Settings, store: InMemoryRegistryStore) -> RegistryServices:
    return build_services(settings, store=store)


def make_user(
    services: RegistryServices,
    store: InMemoryRegistryStore,
    role: Role,
    email: str,
) -> User:
    now = utc_now()
    return store.insert_user(
        User(
            user_id=uuid4(),
            email=email,
            password_hash=services.auth.hash_password(TEST_PASSWORD),
            role=role,
            first_name="Test",
            last_name=role.value.title(),
            created_at=now,
            updated_at=now,
        )
    )


def make_plot(
    store: InMemoryRegistryStore,
    plot_number: str = "P1",
    status: PlotStatus = PlotStatus.AVAILABLE,
    location: str = "Tamale North District",
) -> LandPlot:
    now = utc_now()
    return store.insert_plot(
        LandPlot(
            plot_id=uuid4(),
            plot_number=plot_number,
            location=location,
            size=Decimal("2.5"),
            size_unit=SizeUnit.ACRES,
            status=status,
            owner_name="Gbewaa Palace",
            registration_date=now.date(),
            created_at=now,
            updated_at=now,
        )
    )


@pytest.fixture
def admin(services: RegistryServices, store: InMemoryRegistryStore) -> User:
    return make_user(services, store, Role.ADMIN, "admin@example.com")


@pytest.fixture
def staff(services: RegistryServices, store: InMemoryRegistryStore) -> User:
    return make_user(services, store, Role.STAFF, "staff@example.com")


@pytest.fixture
def auditor(services: RegistryServices, store: InMemoryRegistryStore) -> User:
    return make_user(services, store, Role.AUDITOR, "auditor@example.com")


@pytest.fixture
def available_plot(store: InMemoryRegistryStore) -> LandPlot:
    return make_plot(store)


@pytest.fixture
def plot_factory(store: InMemoryRegistryStore):
    """Insert plots directly into the store, bypassing the land service."""

    def factory(plot_number: str = "P1", status: PlotStatus = PlotStatus.AVAILABLE, **kwargs):
        return make_plot(store, plot_number=plot_number, status=status, **kwargs)

    return factory
