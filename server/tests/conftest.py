"""Test configuration and fixtures."""

import smtplib
from datetime import datetime, timedelta
from typing import Any
from uuid import uuid4

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from skybook.core.config import Settings, settings
from skybook.core.database import Base, get_db
from skybook.models import *  # noqa: F403 - Import all models
from skybook.models import CabinClass, Flight, FlightPrice, FlightSeat, User
from skybook.services.email_service import EmailService
from skybook.services.identity_provider import (
    IdentityProvider,
    IdentitySession,
    IdentityUser,
    InvalidCredentialsError,
    UserAlreadyExistsError,
)
from skybook.services.notification_relay import NotificationRelay

# Test database URL (in-memory SQLite for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

DEFAULT_DEPARTURE = datetime(2030, 6, 1, 9, 0)


def make_access_token(user_id: str, email: str | None = None, expires_in: int = 3600) -> str:
    """Sign an access token the way the identity provider does."""
    now = datetime.utcnow()
    payload = {
        "sub": user_id,
        "aud": settings.jwt_audience,
        "role": "authenticated",
        "iat": now,
        "exp": now + timedelta(seconds=expires_in),
    }
    if email:
        payload["email"] = email
    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256")


class FakeIdentityProvider(IdentityProvider):
    """In-memory identity provider issuing real signed tokens."""

    name = "fake"

    def __init__(self):
        self.accounts: dict[str, dict[str, Any]] = {}
        self.refresh_tokens: dict[str, str] = {}
        self.signed_out: list[str] = []

    def _session(self, account: dict[str, Any]) -> IdentitySession:
        refresh_token = f"refresh-{uuid4().hex}"
        self.refresh_tokens[refresh_token] = account["email"]
        return IdentitySession(
            user=IdentityUser(id=account["id"], email=account["email"], metadata=account["metadata"]),
            access_token=make_access_token(account["id"], account["email"]),
            refresh_token=refresh_token,
            expires_in=3600,
        )

    async def sign_up(self, email, password, metadata):
        if email in self.accounts:
            raise UserAlreadyExistsError("User already registered", 422)
        self.accounts[email] = {"id": str(uuid4()), "email": email, "password": password, "metadata": metadata}
        return self._session(self.accounts[email])

    async def sign_in(self, email, password):
        account = self.accounts.get(email)
        if account is None or account["password"] != password:
            raise InvalidCredentialsError("Invalid login credentials", 400)
        return self._session(account)

    async def refresh(self, refresh_token):
        email = self.refresh_tokens.pop(refresh_token, None)
        if email is None:
            raise InvalidCredentialsError("Invalid Refresh Token", 400)
        return self._session(self.accounts[email])

    async def sign_out(self, access_token):
        self.signed_out.append(access_token)

    async def update_user(self, access_token, attributes):
        claims = jwt.decode(
            access_token,
            settings.jwt_secret,
            algorithms=["HS256"],
            audience=settings.jwt_audience,
        )
        account = next(a for a in self.accounts.values() if a["id"] == claims["sub"])
        if "password" in attributes:
            account["password"] = attributes["password"]
        return IdentityUser(id=account["id"], email=account["email"], metadata=account["metadata"])


class RecordingEmailService(EmailService):
    """Email service that records messages instead of talking SMTP."""

    def __init__(self):
        super().__init__(Settings(smtp_host="smtp.test"))
        self.sent: list[dict[str, str]] = []
        self.fail = False

    async def send(self, to: str, subject: str, body_html: str) -> None:
        if self.fail:
            raise smtplib.SMTPException("SMTP server unavailable")
        self.sent.append({"to": to, "subject": subject, "html": body_html})


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_session_factory(test_engine):
    """Session factory configured like the application's."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def test_session(test_session_factory):
    """Create a test database session."""
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def notification_relay():
    """Relay with a short heartbeat."""
    return NotificationRelay(heartbeat_seconds=0.05)


@pytest.fixture
def email_service():
    return RecordingEmailService()


@pytest.fixture
def identity_provider():
    return FakeIdentityProvider()


@pytest_asyncio.fixture(scope="function")
async def test_app(test_session, notification_relay, email_service, identity_provider):
    """Create a test FastAPI application."""
    from fastapi import FastAPI

    from skybook.main import register_exception_handlers, register_routers

    # Simplified test app without lifespan or middleware
    app = FastAPI(
        title="SkyBook API (Test)",
        description="Test version of the API",
        version="1.0.0-test",
    )

    app.state.notification_relay = notification_relay
    app.state.email_service = email_service
    app.state.identity_provider = identity_provider

    register_exception_handlers(app)
    register_routers(app)

    # Override database dependency
    async def override_get_db():
        yield test_session

    app.dependency_overrides[get_db] = override_get_db

    yield app

    # Clean up
    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app):
    """Create a test HTTP client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def flight_factory(test_session):
    """Create a flight with one price and seat row per cabin."""

    async def create_flight(
        flight_number: str = "SB100",
        origin: str = "JFK",
        destination: str = "LAX",
        departure_time: datetime = DEFAULT_DEPARTURE,
        duration_minutes: int = 360,
        cabins: dict[CabinClass, tuple[int, int]] | None = None,
        status: str = "scheduled",
    ) -> Flight:
        # cabin -> (seats, unit price in cents)
        cabins = cabins or {CabinClass.ECONOMY: (5, 10000)}
        flight = Flight(
            flight_number=flight_number,
            airline="SkyBook Air",
            aircraft="Airbus A321neo",
            origin=origin,
            destination=destination,
            departure_time=departure_time,
            arrival_time=departure_time + timedelta(minutes=duration_minutes),
            duration_minutes=duration_minutes,
            status=status,
        )
        flight.prices = [
            FlightPrice(cabin_class=cabin.value, price_amount=price, price_currency="USD")
            for cabin, (_, price) in cabins.items()
        ]
        flight.seats = [
            FlightSeat(cabin_class=cabin.value, total_seats=seats, available_seats=seats)
            for cabin, (seats, _) in cabins.items()
        ]
        test_session.add(flight)
        await test_session.commit()
        return flight

    return create_flight


@pytest_asyncio.fixture
async def test_user(test_session):
    """A user profile row."""
    user = User(
        id=uuid4(),
        email="traveler@example.com",
        first_name="Ada",
        last_name="Traveler",
    )
    test_session.add(user)
    await test_session.commit()
    return user


@pytest.fixture
def auth_headers(test_user):
    """Bearer headers for ``test_user``."""
    token = make_access_token(str(test_user.id), test_user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def sample_passenger_data():
    """Sample passenger data for testing."""
    return {
        "firstName": "Ada",
        "lastName": "Traveler",
        "dateOfBirth": "1990-04-12",
        "nationality": "US",
        "passportNumber": "X1234567",
    }


@pytest.fixture
def token_factory():
    """Sign access tokens for arbitrary users."""
    return make_access_token
