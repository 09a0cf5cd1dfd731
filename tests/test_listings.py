"""
Tests for listing endpoints: create, index/search, show, update, delete.
"""

from datetime import timedelta

import pytest
from httpx import AsyncClient

from wanderlust.core.time import utc_today
from wanderlust.models.listing import DEFAULT_IMAGE_URL
from wanderlust.services.cache_service import make_listing_list_key

NEW_LISTING = {
    "title": "Treehouse in the Redwoods",
    "description": "Sleep among giants",
    "price": 2200,
    "location": "  Big Sur ",
    "country": "United States",
    "category": "Camping",
    "total_rooms": 3,
}


@pytest.mark.asyncio
async def test_create_listing(client: AsyncClient, owner, owner_headers):
    """New listings start with every room available."""
    response = await client.post("/api/v1/listings/", json=NEW_LISTING, headers=owner_headers)
    assert response.status_code == 201
    data = response.json()
    assert data["owner_id"] == owner.id
    assert data["location"] == "Big Sur"
    assert data["total_rooms"] == 3
    assert data["rooms_available"] == 3
    assert data["image_url"] == DEFAULT_IMAGE_URL


@pytest.mark.asyncio
async def test_create_listing_unauthenticated(client: AsyncClient):
    response = await client.post("/api/v1/listings/", json=NEW_LISTING)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_listing_unknown_category(client: AsyncClient, owner_headers):
    response = await client.post(
        "/api/v1/listings/",
        json={**NEW_LISTING, "category": "Volcanoes"},
        headers=owner_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_create_listing_needs_a_room(client: AsyncClient, owner_headers):
    response = await client.post(
        "/api/v1/listings/",
        json={**NEW_LISTING, "total_rooms": 0},
        headers=owner_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_index_filters_and_search(client: AsyncClient, listing, owner_headers):
    await client.post("/api/v1/listings/", json=NEW_LISTING, headers=owner_headers)

    everything = await client.get("/api/v1/listings/")
    assert everything.status_code == 200
    assert everything.json()["total"] == 2
    assert everything.json()["cached"] is False

    beaches = await client.get("/api/v1/listings/", params={"category": "Beaches"})
    assert [item["id"] for item in beaches.json()["listings"]] == [listing.id]

    search = await client.get("/api/v1/listings/", params={"q": "big sur"})
    assert [item["title"] for item in search.json()["listings"]] == [NEW_LISTING["title"]]

    nothing = await client.get("/api/v1/listings/", params={"q": "atlantis"})
    assert nothing.json()["total"] == 0


@pytest.mark.asyncio
async def test_show_listing_with_reviews(client: AsyncClient, listing, guest_headers):
    await client.post(
        f"/api/v1/listings/{listing.id}/reviews/",
        json={"rating": 4, "comment": "Great sunsets"},
        headers=guest_headers,
    )

    response = await client.get(f"/api/v1/listings/{listing.id}")
    assert response.status_code == 200
    data = response.json()
    assert data["title"] == listing.title
    assert [r["comment"] for r in data["reviews"]] == ["Great sunsets"]


@pytest.mark.asyncio
async def test_show_missing_listing(client: AsyncClient):
    response = await client.get("/api/v1/listings/99999")
    assert response.status_code == 404
    assert response.json()["detail"] == {
        "kind": "not_found",
        "entity": "listing",
        "entity_id": 99999,
        "message": "Listing 99999 not found",
    }


@pytest.mark.asyncio
async def test_update_cannot_clear_required_fields(client: AsyncClient, listing, owner_headers):
    for field in ("title", "price", "category", "latitude"):
        response = await client.patch(
            f"/api/v1/listings/{listing.id}", json={field: None}, headers=owner_headers
        )
        assert response.status_code == 422, field

    shown = await client.get(f"/api/v1/listings/{listing.id}")
    assert shown.json()["title"] == "Cozy Beachfront Cottage"


@pytest.mark.asyncio
async def test_update_can_clear_optional_contact(client: AsyncClient, listing, owner_headers):
    response = await client.patch(
        f"/api/v1/listings/{listing.id}", json={"phone_number": None}, headers=owner_headers
    )
    assert response.status_code == 200
    assert response.json()["phone_number"] is None


@pytest.mark.asyncio
async def test_owner_updates_listing(client: AsyncClient, listing, owner_headers):
    response = await client.patch(
        f"/api/v1/listings/{listing.id}",
        json={"title": "Renovated Beachfront Cottage", "price": 1750},
        headers=owner_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "Renovated Beachfront Cottage"
    assert data["price"] == 1750
    assert data["total_rooms"] == 5


@pytest.mark.asyncio
async def test_non_owner_cannot_update(client: AsyncClient, listing, guest_headers):
    response = await client.patch(
        f"/api/v1/listings/{listing.id}",
        json={"title": "Mine now"},
        headers=guest_headers,
    )
    assert response.status_code == 403
    assert response.json()["detail"]["kind"] == "forbidden"


@pytest.mark.asyncio
async def test_resize_keeps_confirmed_rooms_held(
    client: AsyncClient, listing, owner_headers, make_booking, stay
):
    """5 rooms with 3 confirmed: shrinking to 2 is refused, to 4 leaves 1 free."""
    await make_booking(*stay(), rooms=3, confirm=True)

    too_small = await client.patch(
        f"/api/v1/listings/{listing.id}", json={"total_rooms": 2}, headers=owner_headers
    )
    assert too_small.status_code == 409
    assert too_small.json()["detail"]["kind"] == "insufficient_inventory"

    shrink = await client.patch(
        f"/api/v1/listings/{listing.id}", json={"total_rooms": 4}, headers=owner_headers
    )
    assert shrink.status_code == 200
    assert shrink.json()["total_rooms"] == 4
    assert shrink.json()["rooms_available"] == 1

    grow = await client.patch(
        f"/api/v1/listings/{listing.id}", json={"total_rooms": 10}, headers=owner_headers
    )
    assert grow.json()["rooms_available"] == 7


@pytest.mark.asyncio
async def test_delete_blocked_while_bookings_active(
    client: AsyncClient, listing, owner_headers, make_booking, stay
):
    await make_booking(*stay())

    response = await client.delete(f"/api/v1/listings/{listing.id}", headers=owner_headers)
    assert response.status_code == 409
    assert response.json()["detail"]["kind"] == "blocked"


@pytest.mark.asyncio
async def test_delete_listing_after_bookings_ended(
    client: AsyncClient, listing, owner_headers, make_booking
):
    today = utc_today()
    await make_booking(today - timedelta(days=9), today - timedelta(days=2), confirm=True)

    response = await client.delete(f"/api/v1/listings/{listing.id}", headers=owner_headers)
    assert response.status_code == 200
    assert response.json()["listing_id"] == listing.id

    gone = await client.get(f"/api/v1/listings/{listing.id}")
    assert gone.status_code == 404


@pytest.mark.asyncio
async def test_non_owner_cannot_delete(client: AsyncClient, listing, guest_headers):
    response = await client.delete(f"/api/v1/listings/{listing.id}", headers=guest_headers)
    assert response.status_code == 403


def test_cache_keys_separate_filters():
    plain = make_listing_list_key(1, 20)
    assert plain != make_listing_list_key(1, 20, category="Beaches")
    assert plain != make_listing_list_key(2, 20)
    assert make_listing_list_key(1, 20, query="Malibu") == make_listing_list_key(
        1, 20, query="malibu"
    )
    assert make_listing_list_key(1, 20, category="Iconic Cities").startswith("listings:list:")


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["cache"] == {"status": "disabled"}


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient):
    response = await client.get("/", headers={"X-Request-ID": "trace-abc"})
    assert response.headers["X-Request-ID"] == "trace-abc"
    assert "X-Response-Time" in response.headers


@pytest.mark.asyncio
async def test_metrics_exposed(client: AsyncClient):
    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "booking_transitions" in response.text
