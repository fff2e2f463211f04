"""
Shared fixtures.

Settings are read at import time, so the environment is prepared before any
``src`` module is imported: a throwaway signing key, an in-memory database and
quiet logging.
"""

import os

os.environ.setdefault('SECRET_KEY', 'test-secret-key')
os.environ['DATABASE_URL'] = 'sqlite://'
os.environ['LOG_LEVEL'] = 'WARNING'

from collections.abc import Callable, Generator
from datetime import datetime, timedelta
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from src.auth.utils import create_access_token
from src.cities.service import CityService
from src.clock import utc_now
from src.config import settings
from src.database import Base, SessionLocal, engine
from src.main import app
from src.models import City, Journey, Role, User
from src.rate_limit.policy import RateLimitPolicy

# Points relative to the seeded Jakarta pickup zone (10 km radius)
JAKARTA_CENTER = (-6.2088, 106.8456)
JAKARTA_PICKUP = (-6.2100, 106.8500)
BANDUNG_CENTER = (-6.9175, 107.6191)


class FakeClock:
    """Manually advanced monotonic clock, in seconds"""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def clean_database() -> Generator[None, None, None]:
    """Fresh schema for every test"""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def cities(db: Session) -> dict[str, City]:
    CityService.seed_default_cities(db)
    return {city.name: city for city in CityService.get_cities(db)}


@pytest.fixture
def make_user(db: Session) -> Callable[..., User]:
    """Insert a user directly; the password hash is never checked on this path"""
    counter = {'n': 0}

    def _make_user(role: Role = Role.TRAVELLER, name: Optional[str] = None) -> User:
        counter['n'] += 1
        user = User(
            email=f'{role.value}{counter["n"]}@example.com',
            password_hash='not-a-real-hash',
            name=name or f'{role.value.capitalize()} {counter["n"]}',
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_journey(db: Session, cities: dict[str, City]) -> Callable[..., Journey]:
    def _make_journey(
        total_seats: int = 4,
        departure_time: Optional[datetime] = None,
        origin: str = 'Jakarta',
        destination: str = 'Bandung',
        driver: Optional[User] = None,
    ) -> Journey:
        journey = Journey(
            origin_city_id=cities[origin].id,
            destination_city_id=cities[destination].id,
            departure_time=departure_time or utc_now() + timedelta(days=1),
            total_seats=total_seats,
            driver_id=driver.id if driver else None,
        )
        db.add(journey)
        db.commit()
        db.refresh(journey)
        return journey

    return _make_journey


@pytest.fixture
def auth_headers() -> Callable[[User], dict[str, str]]:
    def _auth_headers(user: User) -> dict[str, str]:
        return {'Authorization': f'Bearer {create_access_token(user)}'}

    return _auth_headers


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """TestClient with fresh rate limit state; lifespan seeding is not run"""
    app.state.rate_limits = RateLimitPolicy.from_settings(settings)
    yield TestClient(app)
    app.state.rate_limits = RateLimitPolicy.from_settings(settings)
