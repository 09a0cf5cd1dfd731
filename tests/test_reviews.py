"""
Tests for review endpoints.
"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_create_review(client: AsyncClient, listing, guest, guest_headers):
    response = await client.post(
        f"/api/v1/listings/{listing.id}/reviews/",
        json={"rating": 5, "comment": "Perfect weekend"},
        headers=guest_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["author_id"] == guest.id
    assert data["listing_id"] == listing.id
    assert data["rating"] == 5


@pytest.mark.asyncio
async def test_rating_out_of_range(client: AsyncClient, listing, guest_headers):
    response = await client.post(
        f"/api/v1/listings/{listing.id}/reviews/",
        json={"rating": 6, "comment": "Off the charts"},
        headers=guest_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_review_requires_login(client: AsyncClient, listing):
    response = await client.post(
        f"/api/v1/listings/{listing.id}/reviews/",
        json={"rating": 3, "comment": "Anonymous"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_review_missing_listing(client: AsyncClient, guest_headers):
    response = await client.post(
        "/api/v1/listings/4040/reviews/",
        json={"rating": 3, "comment": "Where is it?"},
        headers=guest_headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_only_author_deletes_review(
    client: AsyncClient, listing, guest_headers, stranger_headers
):
    created = await client.post(
        f"/api/v1/listings/{listing.id}/reviews/",
        json={"rating": 2, "comment": "Noisy neighbours"},
        headers=guest_headers,
    )
    review_id = created.json()["id"]

    denied = await client.delete(
        f"/api/v1/listings/{listing.id}/reviews/{review_id}", headers=stranger_headers
    )
    assert denied.status_code == 403

    deleted = await client.delete(
        f"/api/v1/listings/{listing.id}/reviews/{review_id}", headers=guest_headers
    )
    assert deleted.status_code == 200

    again = await client.delete(
        f"/api/v1/listings/{listing.id}/reviews/{review_id}", headers=guest_headers
    )
    assert again.status_code == 404
