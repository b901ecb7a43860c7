"""Tests for newsletter subscription lifecycle endpoints."""

from __future__ import annotations

import re

SUBSCRIPTION_ID = re.compile(r"NL-\d+-[A-Z0-9]{6}")


def _subscribe(client, email="reader@example.com", **extra):
    return client.post("/api/newsletter/subscribe", json={"email": email, **extra})


def _token(app, services, email="reader@example.com") -> str:
    with app.app_context():
        return services.newsletter.find_by_email(email).unsubscribe_token


def test_subscribe_creates_subscription(client, outbox):
    response = _subscribe(client, "Reader@Example.com", name="Noor", preferences=["visa_updates", "travel_tips"])

    assert response.status_code == 201
    data = response.get_json()["data"]
    assert SUBSCRIPTION_ID.fullmatch(data["subscription_id"])
    assert data["email"] == "reader@example.com"
    assert data["status"] == "subscribed"
    assert data["preferences"] == ["visa_updates", "travel_tips"]
    assert [message["To"] for message in outbox] == ["reader@example.com", "ops@visa.example"]
    assert "/unsubscribe?token=" in outbox[0].get_body(("html",)).get_content()


def test_repeat_subscribe_reports_already_subscribed(app, client, services):
    _subscribe(client)

    response = _subscribe(client, "READER@example.com")

    assert response.status_code == 200
    assert response.get_json()["data"]["status"] == "already_subscribed"
    with app.app_context():
        assert services.newsletter.count() == 1


def test_concurrent_insert_resolves_as_already_subscribed(app, client, services, monkeypatch):
    _subscribe(client)
    newsletter = services.newsletter
    original = newsletter.find_by_email
    calls = []

    def lose_race(email):
        calls.append(email)
        return None if len(calls) == 1 else original(email)

    monkeypatch.setattr(newsletter, "find_by_email", lose_race)

    with app.app_context():
        outcome = newsletter.subscribe({"email": "reader@example.com"})
        assert newsletter.count() == 1

    assert outcome.status == "already_subscribed"
    assert not outcome.created


def test_unsubscribe_then_resubscribe_reuses_the_row(app, client, services, outbox):
    subscription_id = _subscribe(client).get_json()["data"]["subscription_id"]
    first_token = _token(app, services)

    response = client.post("/api/newsletter/unsubscribe", json={"token": first_token})
    assert response.status_code == 200
    assert response.get_json()["data"]["status"] == "unsubscribed"

    status = client.get("/api/newsletter/status/reader@example.com").get_json()["data"]
    assert status["subscribed"] is False
    assert status["status"] == "unsubscribed"

    outbox.clear()
    response = _subscribe(client, preferences=["promotions"])
    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["status"] == "reactivated"
    assert data["subscription_id"] == subscription_id
    assert [message["To"] for message in outbox] == ["reader@example.com"]

    assert _token(app, services) != first_token
    with app.app_context():
        assert services.newsletter.count() == 1


def test_unsubscribe_token_can_come_from_query(app, client, services):
    _subscribe(client)
    token = _token(app, services)

    response = client.post(f"/api/newsletter/unsubscribe?token={token}")

    assert response.status_code == 200


def test_used_token_is_rejected(app, client, services):
    _subscribe(client)
    token = _token(app, services)
    client.post("/api/newsletter/unsubscribe", json={"token": token})

    response = client.post("/api/newsletter/unsubscribe", json={"token": token})

    assert response.status_code == 400
    assert response.get_json()["code"] == "INVALID_TOKEN"


def test_malformed_token_is_a_validation_error(client):
    response = client.post("/api/newsletter/unsubscribe", json={"token": "abc"})

    assert response.status_code == 400
    payload = response.get_json()
    assert payload["code"] == "VALIDATION_ERROR"
    assert payload["errors"][0]["message"] == "Invalid unsubscribe token"


def test_update_preferences(client, outbox):
    _subscribe(client, preferences=["visa_updates"])
    outbox.clear()

    response = client.patch(
        "/api/newsletter/preferences",
        json={"email": "reader@example.com", "preferences": ["policy_changes", "general_news"]},
    )

    assert response.status_code == 200
    assert response.get_json()["data"]["preferences"] == ["policy_changes", "general_news"]
    status = client.get("/api/newsletter/status/reader@example.com").get_json()["data"]
    assert status["preferences"] == ["policy_changes", "general_news"]
    assert len(outbox) == 1


def test_update_preferences_requires_active_subscription(client):
    response = client.patch(
        "/api/newsletter/preferences",
        json={"email": "ghost@example.com", "preferences": ["promotions"]},
    )

    assert response.status_code == 404
    assert response.get_json()["code"] == "SUBSCRIPTION_NOT_FOUND"


def test_invalid_preference_rejected(client):
    response = _subscribe(client, preferences=["visa_updates", "spam"])

    assert response.status_code == 400
    assert response.get_json()["errors"][0]["message"] == "Invalid preference option"


def test_status_for_unknown_email(client):
    response = client.get("/api/newsletter/status/nobody@example.com")

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data == {
        "email": "nobody@example.com",
        "subscribed": False,
        "message": "Email not found in our newsletter database",
    }


def test_status_rejects_malformed_email(client):
    response = client.get("/api/newsletter/status/not-an-email")

    assert response.status_code == 400


def test_list_subscriptions_by_status(app, client, services):
    _subscribe(client, "one@example.com")
    _subscribe(client, "two@example.com")
    client.post("/api/newsletter/unsubscribe", json={"token": _token(app, services, "two@example.com")})

    active = client.get("/api/newsletter/subscriptions").get_json()["data"]
    everyone = client.get("/api/newsletter/subscriptions?status=all").get_json()["data"]
    fallback = client.get("/api/newsletter/subscriptions?status=bogus").get_json()["data"]

    assert [item["email"] for item in active["subscriptions"]] == ["one@example.com"]
    assert everyone["pagination"]["total"] == 2
    assert everyone["pagination"]["per_page"] == 50
    assert fallback["filters"] == {"status": "active"}


def test_newsletter_stats(app, client, services):
    _subscribe(client, "one@example.com", preferences=["visa_updates", "promotions"])
    _subscribe(client, "two@example.com", preferences=["visa_updates"])
    _subscribe(client, "three@example.com")
    client.post("/api/newsletter/unsubscribe", json={"token": _token(app, services, "three@example.com")})

    stats = client.get("/api/newsletter/stats").get_json()["data"]

    assert stats["overview"] == {
        "total_subscriptions": 3,
        "active_subscriptions": 2,
        "unsubscribed_count": 1,
        "retention_rate": 66.7,
    }
    assert stats["preference_breakdown"]["visa_updates"] == 2
    assert stats["preference_breakdown"]["promotions"] == 1
    assert stats["preference_breakdown"]["travel_tips"] == 0
    assert stats["monthly_trends"][0]["new_subscriptions"] == 3
    assert stats["monthly_trends"][0]["active_in_month"] == 2
    assert stats["recent_activity"]["net_growth_last_30_days"] == 2
