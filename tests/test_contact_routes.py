"""Tests for the contact form endpoints."""

from __future__ import annotations

import re

MESSAGE_ID = re.compile(r"CONTACT-\d+-[A-Z0-9]{6}")


def _contact(**overrides) -> dict:
    payload = {
        "name": "Ravi Menon",
        "email": "Ravi.Menon@Example.com",
        "phone": "+971551112233",
        "subject": "Question about transit visas",
        "message": "Do I need a transit visa for a 10 hour layover?",
        "inquiry_type": "visa_inquiry",
        "preferred_contact_method": "phone",
    }
    payload.update(overrides)
    return payload


def _submit(client, **overrides) -> str:
    response = client.post("/api/contact", json=_contact(**overrides))
    assert response.status_code == 201, response.get_json()
    return response.get_json()["data"]["message_id"]


def test_submit_contact_message(client, outbox):
    response = client.post("/api/contact", json=_contact())

    assert response.status_code == 201
    data = response.get_json()["data"]
    assert MESSAGE_ID.fullmatch(data["message_id"])
    assert data["status"] == "received"
    assert data["estimated_response_time"] == "24-48 hours"
    assert [message["To"] for message in outbox] == ["ravi.menon@example.com", "ops@visa.example"]

    stored = client.get(f"/api/contact/messages/{data['message_id']}").get_json()["data"]["message"]
    assert stored["status"] == "new"
    assert stored["preferred_contact"] == "phone"
    assert stored["email"] == "ravi.menon@example.com"


def test_form_encoded_submission_is_accepted(client):
    response = client.post("/api/contact", data=_contact(phone=""))

    assert response.status_code == 201


def test_optional_fields_default(client):
    message_id = _submit(client, inquiry_type=None, preferred_contact_method=None, phone=None)

    stored = client.get(f"/api/contact/messages/{message_id}").get_json()["data"]["message"]
    assert stored["inquiry_type"] == "general"
    assert stored["preferred_contact"] == "email"
    assert stored["phone"] is None


def test_invalid_submission_lists_every_field(client, outbox):
    response = client.post(
        "/api/contact",
        json=_contact(name="R", subject="Hi", inquiry_type="sales"),
    )

    assert response.status_code == 400
    payload = response.get_json()
    assert payload["code"] == "VALIDATION_ERROR"
    assert {error["field"] for error in payload["errors"]} == {"name", "subject", "inquiry_type"}
    assert outbox == []


def test_unknown_message_returns_404(client):
    response = client.get("/api/contact/messages/CONTACT-1-NOPE00")

    assert response.status_code == 404
    assert response.get_json()["code"] == "MESSAGE_NOT_FOUND"


def test_resolving_a_message_notifies_sender(client, outbox):
    message_id = _submit(client)
    outbox.clear()

    response = client.patch(
        f"/api/contact/messages/{message_id}/status",
        json={"status": "resolved", "notes": "Transit under 24 hours needs no visa."},
    )

    assert response.status_code == 200
    assert response.get_json()["data"]["new_status"] == "resolved"
    stored = client.get(f"/api/contact/messages/{message_id}").get_json()["data"]["message"]
    assert stored["admin_notes"] == "Transit under 24 hours needs no visa."
    assert [message["To"] for message in outbox] == ["ravi.menon@example.com"]


def test_in_progress_does_not_notify(client, outbox):
    message_id = _submit(client)
    outbox.clear()

    client.patch(f"/api/contact/messages/{message_id}/status", json={"status": "in_progress"})

    assert outbox == []


def test_invalid_status_is_rejected(client):
    message_id = _submit(client)

    response = client.patch(f"/api/contact/messages/{message_id}/status", json={"status": "open"})

    assert response.status_code == 400
    stored = client.get(f"/api/contact/messages/{message_id}").get_json()["data"]["message"]
    assert stored["status"] == "new"


def test_list_filters_by_inquiry_type(client):
    _submit(client)
    _submit(client, inquiry_type="complaint")
    _submit(client, inquiry_type="complaint")

    data = client.get("/api/contact/messages?inquiry_type=complaint&limit=1").get_json()["data"]

    assert len(data["messages"]) == 1
    assert data["messages"][0]["inquiry_type"] == "complaint"
    assert data["pagination"] == {"current_page": 1, "per_page": 1, "total": 2, "total_pages": 2}


def test_contact_stats(client):
    first = _submit(client)
    _submit(client, inquiry_type="complaint")
    client.patch(f"/api/contact/messages/{first}/status", json={"status": "closed"})

    stats = client.get("/api/contact/stats").get_json()["data"]

    assert stats["total_messages"] == 2
    assert stats["status_breakdown"] == {"new": 1, "in_progress": 0, "resolved": 0, "closed": 1}
    assert stats["inquiry_type_breakdown"] == {"visa_inquiry": 1, "complaint": 1}
    assert stats["recent_activity"]["last_7_days"] == 2


def test_submission_succeeds_when_mail_relay_fails(client, failing_mail, caplog):
    message_id = _submit(client)

    assert client.get(f"/api/contact/messages/{message_id}").status_code == 200
    assert failing_mail.attempts == 4
    assert "Giving up on contact-confirmation" in caplog.text


def test_resolving_succeeds_when_mail_relay_fails(client, failing_mail, caplog):
    message_id = _submit(client)
    caplog.clear()

    response = client.patch(f"/api/contact/messages/{message_id}/status", json={"status": "resolved"})

    assert response.status_code == 200
    stored = client.get(f"/api/contact/messages/{message_id}").get_json()["data"]["message"]
    assert stored["status"] == "resolved"
    assert "Giving up on contact-resolved" in caplog.text
