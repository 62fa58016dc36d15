from __future__ import annotations

from conftest import auth_headers

from ustadgee.models import Notification, Review
from ustadgee.schemas import NotificationType


def _review(client, seed, user_id: int, rating: int, description: str = ""):
    return client.post(
        "/api/addReview",
        json={"worker_id": seed.provider_id, "rating": rating, "description": description},
        headers=auth_headers(user_id),
    )


def test_add_review_notifies_provider(client, db, seed) -> None:
    res = _review(client, seed, seed.requester_id, 5, "Quick and tidy")
    assert res.status_code == 200
    assert res.json()["message"] == "Review added successfully"

    [notification] = db.query(Notification).filter(Notification.recipient_id == seed.provider_id).all()
    assert notification.title == "New review received"
    assert notification.type == NotificationType.REVIEW
    assert notification.post_id == res.json()["data"]["id"]


def test_second_review_updates_first(client, db, seed) -> None:
    first = _review(client, seed, seed.requester_id, 2).json()["data"]["id"]
    res = _review(client, seed, seed.requester_id, 4, "Came back and fixed it")

    assert res.json()["message"] == "Review updated successfully"
    assert res.json()["data"]["id"] == first
    assert db.query(Review).count() == 1


def test_reviews_summary(client, seed) -> None:
    _review(client, seed, seed.requester_id, 5)
    _review(client, seed, seed.outsider_id, 2)

    res = client.get(f"/api/reviews/{seed.provider_id}", headers=auth_headers(seed.requester_id))
    data = res.json()["data"]
    assert data["total_reviews"] == 2
    assert data["average_rating"] == 3.5
    assert {r["reviewer"]["id"] for r in data["reviews"]} == {seed.requester_id, seed.outsider_id}


def test_review_validation(client, seed) -> None:
    assert _review(client, seed, seed.requester_id, 6).status_code == 422
    assert _review(client, seed, seed.provider_id, 5).status_code == 400

    res = client.post(
        "/api/addReview",
        json={"worker_id": seed.outsider_id, "rating": 4},
        headers=auth_headers(seed.requester_id),
    )
    assert res.status_code == 404


def test_provider_without_reviews(client, seed) -> None:
    res = client.get(f"/api/reviews/{seed.provider_id}", headers=auth_headers(seed.requester_id))
    assert res.json()["data"] == {"reviews": [], "average_rating": 0, "total_reviews": 0}
