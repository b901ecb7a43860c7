"""Tests for the feedback endpoints."""

from __future__ import annotations

import re

FEEDBACK_ID = re.compile(r"FB-\d+-[A-Z0-9]{6}")


def _feedback(**overrides) -> dict:
    payload = {
        "name": "Lena Park",
        "email": "lena@example.com",
        "service_used": "visa_application",
        "rating": 5,
        "feedback_type": "compliment",
        "subject": "Smooth process",
        "message": "The whole application took less than a week.",
        "would_recommend": "yes",
    }
    payload.update(overrides)
    return payload


def _submit(client, **overrides) -> str:
    response = client.post("/api/feedback", json=_feedback(**overrides))
    assert response.status_code == 201, response.get_json()
    return response.get_json()["data"]["feedback_id"]


def test_submit_feedback(client, outbox):
    response = client.post("/api/feedback", json=_feedback())

    assert response.status_code == 201
    data = response.get_json()["data"]
    assert FEEDBACK_ID.fullmatch(data["feedback_id"])
    assert data["status"] == "received"
    assert len(outbox) == 2
    assert "COMPLIMENT" in outbox[1]["Subject"]

    stored = client.get(f"/api/feedback/{data['feedback_id']}").get_json()["data"]["feedback"]
    assert stored["status"] == "new"
    assert stored["rating"] == 5


def test_rating_out_of_range_is_rejected(client):
    response = client.post("/api/feedback", json=_feedback(rating=6))

    assert response.status_code == 400
    errors = response.get_json()["errors"]
    assert errors == [{"field": "rating", "message": "Rating must be between 1 and 5", "value": 6}]


def test_application_id_must_look_like_one(client):
    bad = client.post("/api/feedback", json=_feedback(application_id="12345"))
    good = client.post("/api/feedback", json=_feedback(application_id="UAE-1700000000000-ABC123XYZ"))

    assert bad.status_code == 400
    assert bad.get_json()["errors"][0]["field"] == "application_id"
    assert good.status_code == 201


def test_unknown_feedback_returns_404(client):
    response = client.get("/api/feedback/FB-1-NOPE00")

    assert response.status_code == 404
    assert response.get_json()["code"] == "FEEDBACK_NOT_FOUND"


def test_responding_with_notes_notifies_submitter(client, outbox):
    feedback_id = _submit(client)
    outbox.clear()

    response = client.patch(
        f"/api/feedback/{feedback_id}/status",
        json={"status": "responded", "admin_notes": "Thank you, we passed this on to the team."},
    )

    assert response.status_code == 200
    assert [message["To"] for message in outbox] == ["lena@example.com"]
    stored = client.get(f"/api/feedback/{feedback_id}").get_json()["data"]["feedback"]
    assert stored["status"] == "responded"
    assert stored["admin_notes"] == "Thank you, we passed this on to the team."


def test_responding_without_notes_sends_nothing(client, outbox):
    feedback_id = _submit(client)
    outbox.clear()

    client.patch(f"/api/feedback/{feedback_id}/status", json={"status": "responded"})

    assert outbox == []


def test_list_filters_by_rating(client):
    _submit(client)
    _submit(client, rating=2, feedback_type="complaint", would_recommend="no")

    data = client.get("/api/feedback?rating=2").get_json()["data"]

    assert [entry["rating"] for entry in data["feedback"]] == [2]
    assert data["filters"]["rating"] == 2
    assert data["pagination"]["total"] == 1


def test_list_sorts_by_rating(client):
    _submit(client, rating=3)
    _submit(client, rating=1)
    _submit(client, rating=4)

    data = client.get("/api/feedback?sort_by=rating&sort_order=asc").get_json()["data"]

    assert [entry["rating"] for entry in data["feedback"]] == [1, 3, 4]
    assert data["sorting"] == {"sort_by": "rating", "sort_order": "asc"}


def test_feedback_stats(client):
    _submit(client, rating=5)
    _submit(client, rating=4, would_recommend="maybe")
    _submit(client, rating=1, feedback_type="complaint", would_recommend="no", service_used="consultation")

    stats = client.get("/api/feedback/stats").get_json()["data"]

    overview = stats["overview"]
    assert overview["total_feedback"] == 3
    assert overview["average_rating"] == 3.33
    assert overview["recommendation_rate"] == {"yes": 1, "no": 1, "maybe": 1, "percentage_yes": 33.3}
    assert stats["rating_distribution"] == {"1_star": 1, "2_star": 0, "3_star": 0, "4_star": 1, "5_star": 1}
    assert stats["feedback_types"]["compliment"] == {"count": 2, "avg_rating": 4.5}
    assert stats["service_feedback"]["consultation"] == {"count": 1, "avg_rating": 1.0}
    assert stats["status_breakdown"]["new"] == 3
    assert stats["recent_activity"]["last_7_days"] == 3
    assert stats["monthly_trends"][0]["count"] == 3


def test_stats_overview_alias(client):
    response = client.get("/api/feedback/stats/overview")

    assert response.status_code == 200
    assert response.get_json()["data"]["overview"]["total_feedback"] == 0
