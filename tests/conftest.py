"""
Pytest fixtures for test database, client, and authentication.

Every test gets its own SQLite file, so tests are isolated without a
running PostgreSQL. Fixtures write through short-lived sessions and close
them again: SQLite transactions start with BEGIN IMMEDIATE, so an idle open
transaction in a fixture would block the app's sessions.
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ["REDIS_ENABLED"] = "false"

from datetime import timedelta
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession

from wanderlust.main import app
from wanderlust.core.security import create_access_token, hash_password
from wanderlust.core.time import utc_today
from wanderlust.db.session import Database
from wanderlust.models.booking import Booking
from wanderlust.models.listing import Listing
from wanderlust.models.user import User
from wanderlust.schemas.booking import BookingCreate
from wanderlust.services.booking_service import confirm_booking, request_booking

PASSWORD = "testpassword123"


@pytest_asyncio.fixture(scope="function")
async def database(tmp_path) -> AsyncGenerator[Database, None]:
    """A fresh SQLite database file with all tables created."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}").open()
    await db.create_all()
    yield db
    await db.close()


@pytest_asyncio.fixture(scope="function")
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    async with database.session() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(database: Database) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the test database (ASGITransport skips the lifespan)."""
    app.state.database = database

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    del app.state.database


async def _create_user(database: Database, username: str) -> User:
    async with database.session() as session:
        user = User(
            email=f"{username}@example.com",
            username=username,
            hashed_password=hash_password(PASSWORD),
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user


def _headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(data={'sub': str(user.id)})}"}


@pytest_asyncio.fixture
async def owner(database: Database) -> User:
    """The host who owns the test listing."""
    return await _create_user(database, "hostuser")


@pytest_asyncio.fixture
async def guest(database: Database) -> User:
    return await _create_user(database, "guestuser")


@pytest_asyncio.fixture
async def stranger(database: Database) -> User:
    """A signed-in user who neither owns the listing nor made the booking."""
    return await _create_user(database, "strangeruser")


@pytest.fixture
def owner_headers(owner: User) -> dict:
    return _headers(owner)


@pytest.fixture
def guest_headers(guest: User) -> dict:
    return _headers(guest)


@pytest.fixture
def stranger_headers(stranger: User) -> dict:
    return _headers(stranger)


@pytest_asyncio.fixture
async def listing(database: Database, owner: User) -> Listing:
    """A listing with 5 rooms, all available."""
    async with database.session() as session:
        item = Listing(
            owner_id=owner.id,
            title="Cozy Beachfront Cottage",
            description="Steps from the sand",
            price=1500,
            location="Malibu",
            country="United States",
            category="Beaches",
            total_rooms=5,
            rooms_available=5,
        )
        session.add(item)
        await session.commit()
        await session.refresh(item)
        return item


@pytest.fixture
def stay():
    """(date_from, date_to) for a stay `start` days from today lasting `nights` days."""

    def _stay(start: int = 30, nights: int = 3):
        date_from = utc_today() + timedelta(days=start)
        return date_from, date_from + timedelta(days=nights)

    return _stay


@pytest.fixture
def booking_payload():
    """JSON body for POST /api/v1/bookings/."""

    def _payload(listing_id: int, date_from, date_to, rooms: int = 1) -> dict:
        return {
            "listing_id": listing_id,
            "date_from": date_from.isoformat(),
            "date_to": date_to.isoformat(),
            "rooms_booked": rooms,
            "guest_name": "Jane Traveller",
            "email": "jane@example.com",
            "phone": "5551234567",
            "people": 2,
        }

    return _payload


@pytest.fixture
def make_booking(database: Database, listing: Listing, owner: User, guest: User):
    """
    Create a booking through the service layer, optionally confirming it.

    Returns the booking as committed; confirmed bookings have already taken
    their rooms out of the listing's inventory.
    """

    async def _make(date_from, date_to, rooms: int = 1, confirm: bool = False,
                    listing_id: Optional[int] = None, user_id: Optional[int] = None) -> Booking:
        data = BookingCreate(
            listing_id=listing_id or listing.id,
            date_from=date_from,
            date_to=date_to,
            rooms_booked=rooms,
            guest_name="Jane Traveller",
            email="jane@example.com",
            phone="5551234567",
            people=2,
        )
        async with database.session() as session:
            outcome = await request_booking(session, user_id or guest.id, data)
            assert outcome.changed, outcome.message
            booking = outcome.value
            if confirm:
                outcome = await confirm_booking(session, booking.id, owner.id)
                assert outcome.changed, outcome.message
                booking = outcome.value
            return booking

    return _make
