"""
Tests for the availability checker: range overlap and capacity decisions.
"""

from datetime import date

import pytest

from wanderlust.models.booking import Booking
from wanderlust.models.listing import Listing
from wanderlust.services.availability import (
    check_availability,
    ranges_overlap,
    rooms_committed,
)
from wanderlust.services.outcomes import OutcomeKind


def june(day: int) -> date:
    return date(2024, 6, day)


def test_ranges_overlap_is_closed_on_both_ends():
    # Checkout day of one stay is the check-in day of the next
    assert ranges_overlap(june(1), june(5), june(5), june(9))
    assert ranges_overlap(june(5), june(9), june(1), june(5))
    assert not ranges_overlap(june(1), june(4), june(5), june(9))


def test_ranges_overlap_containment_and_single_day():
    assert ranges_overlap(june(1), june(30), june(10), june(12))
    assert ranges_overlap(june(10), june(10), june(10), june(10))
    assert not ranges_overlap(june(10), june(10), june(11), june(11))


def test_rooms_committed_counts_only_confirmed_overlaps():
    bookings = [
        Booking(date_from=june(12), date_to=june(20), rooms_booked=2, status="confirmed"),
        Booking(date_from=june(12), date_to=june(20), rooms_booked=3, status="pending"),
        Booking(date_from=june(12), date_to=june(20), rooms_booked=4, status="rejected"),
        Booking(date_from=june(21), date_to=june(25), rooms_booked=5, status="confirmed"),
    ]
    assert rooms_committed(bookings, june(10), june(15)) == 2
    assert rooms_committed(bookings, june(1), june(30)) == 7
    assert rooms_committed(bookings, june(1), june(5)) == 0


async def _three_room_listing(db_session, owner) -> int:
    listing = Listing(
        owner_id=owner.id,
        title="Alpine Chalet",
        description="Ski-in, ski-out",
        price=900,
        location="Zermatt",
        country="Switzerland",
        category="Mountains",
        total_rooms=3,
        rooms_available=3,
    )
    db_session.add(listing)
    await db_session.commit()
    return listing.id


@pytest.mark.asyncio
async def test_overlapping_confirmed_rooms_limit_requests(db_session, owner, make_booking):
    """3 rooms, 2 confirmed for Jun 12-20: a Jun 10-15 request fits 1 room, not 2."""
    listing_id = await _three_room_listing(db_session, owner)
    await make_booking(june(12), june(20), rooms=2, confirm=True, listing_id=listing_id)

    too_many = await check_availability(db_session, listing_id, june(10), june(15), 2)
    assert too_many.kind is OutcomeKind.INSUFFICIENT_INVENTORY
    assert too_many.value.rooms_already_booked == 2
    assert too_many.value.available is False

    fits = await check_availability(db_session, listing_id, june(10), june(15), 1)
    assert fits.kind is OutcomeKind.OK
    assert fits.value.available is True
    assert fits.value.total_rooms == 3


@pytest.mark.asyncio
async def test_shared_boundary_day_counts_as_overlap(db_session, owner, make_booking):
    listing_id = await _three_room_listing(db_session, owner)
    await make_booking(june(12), june(20), rooms=3, confirm=True, listing_id=listing_id)

    outcome = await check_availability(
        db_session, listing_id, june(20), june(22), 1, use_fast_path=False
    )
    assert outcome.kind is OutcomeKind.INSUFFICIENT_INVENTORY

    after = await check_availability(
        db_session, listing_id, june(21), june(22), 1, use_fast_path=False
    )
    assert after.kind is OutcomeKind.OK


@pytest.mark.asyncio
async def test_live_counter_is_stricter_than_range_check(db_session, owner, make_booking):
    """A disjoint range fits by capacity but not while the counter is low."""
    listing_id = await _three_room_listing(db_session, owner)
    await make_booking(june(12), june(20), rooms=2, confirm=True, listing_id=listing_id)

    range_only = await check_availability(
        db_session, listing_id, june(21), june(25), 2, use_fast_path=False
    )
    assert range_only.kind is OutcomeKind.OK

    with_counter = await check_availability(db_session, listing_id, june(21), june(25), 2)
    assert with_counter.kind is OutcomeKind.INSUFFICIENT_INVENTORY
    assert with_counter.value.rooms_available == 1
    assert "currently available" in with_counter.message


@pytest.mark.asyncio
async def test_pending_bookings_do_not_hold_rooms(db_session, owner, make_booking):
    listing_id = await _three_room_listing(db_session, owner)
    await make_booking(june(12), june(20), rooms=3, listing_id=listing_id)

    outcome = await check_availability(db_session, listing_id, june(12), june(20), 3)
    assert outcome.kind is OutcomeKind.OK


@pytest.mark.asyncio
async def test_reversed_range_is_invalid(db_session, listing):
    outcome = await check_availability(db_session, listing.id, june(15), june(10), 1)
    assert outcome.kind is OutcomeKind.INVALID_RANGE
    assert outcome.value is None


@pytest.mark.asyncio
async def test_single_day_range_is_valid(db_session, listing):
    outcome = await check_availability(db_session, listing.id, june(15), june(15), 1)
    assert outcome.kind is OutcomeKind.OK


@pytest.mark.asyncio
async def test_unknown_listing(db_session):
    outcome = await check_availability(db_session, 9999, june(10), june(15), 1)
    assert outcome.kind is OutcomeKind.NOT_FOUND
    assert outcome.entity == "listing"
    assert outcome.entity_id == 9999


@pytest.mark.asyncio
async def test_availability_endpoint(client, listing, make_booking, stay):
    date_from, date_to = stay(start=30, nights=4)
    await make_booking(date_from, date_to, rooms=4, confirm=True)

    response = await client.get(
        f"/api/v1/listings/{listing.id}/availability",
        params={"date_from": date_from.isoformat(), "date_to": date_to.isoformat(), "rooms": 2},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["available"] is False
    assert data["rooms_already_booked"] == 4
    assert data["total_rooms"] == 5


@pytest.mark.asyncio
async def test_availability_endpoint_reversed_range(client, listing):
    response = await client.get(
        f"/api/v1/listings/{listing.id}/availability",
        params={"date_from": "2024-06-15", "date_to": "2024-06-10"},
    )
    assert response.status_code == 400
    assert response.json()["detail"]["kind"] == "invalid_range"
