"""Tests for the persistence gateway."""

from __future__ import annotations

import pytest
from sqlalchemy import select, update

from models import ContactMessage, NewsletterSubscription
from utils.errors import DuplicateError, PersistenceError


def _subscription(email: str, subscription_id: str, token: str) -> NewsletterSubscription:
    return NewsletterSubscription(
        subscription_id=subscription_id,
        email=email,
        preferences=[],
        unsubscribe_token=token,
    )


def _message(message_id: str) -> ContactMessage:
    return ContactMessage(
        message_id=message_id,
        name="Ravi Menon",
        email="ravi@example.com",
        subject="Transit question",
        message="How long can I stay in transit?",
    )


def test_add_returns_primary_key(app, services):
    with app.app_context():
        result = services.gateway.add(_message("CONTACT-1-AAAAAA"))
        stored = services.gateway.fetch_one(select(ContactMessage).where(ContactMessage.message_id == "CONTACT-1-AAAAAA"))

    assert result.rows_affected == 1
    assert result.identifier == stored.id


def test_unique_violation_raises_duplicate_error(app, services):
    gateway = services.gateway
    with app.app_context():
        gateway.add(_subscription("a@example.com", "NL-1-AAAAAA", "a" * 64))

        with pytest.raises(DuplicateError):
            gateway.add(_subscription("a@example.com", "NL-2-BBBBBB", "b" * 64))

        # The session is usable again after the rollback.
        gateway.add(_subscription("b@example.com", "NL-3-CCCCCC", "c" * 64))
        assert len(gateway.fetch_many(select(NewsletterSubscription))) == 2


def test_transaction_rolls_back_every_write(app, services):
    gateway = services.gateway
    with app.app_context():
        gateway.add(_message("CONTACT-1-AAAAAA"))

        with pytest.raises(RuntimeError):
            with gateway.transaction():
                gateway.execute(
                    update(ContactMessage)
                    .where(ContactMessage.message_id == "CONTACT-1-AAAAAA")
                    .values(status="closed")
                )
                gateway.add(_message("CONTACT-2-BBBBBB"))
                raise RuntimeError("abort")

        gateway.session.expire_all()
        rows = gateway.fetch_rows(select(ContactMessage.message_id, ContactMessage.status))

    assert rows == [{"message_id": "CONTACT-1-AAAAAA", "status": "new"}]


def test_nested_transaction_commits_once(app, services):
    gateway = services.gateway
    with app.app_context():
        with gateway.transaction():
            gateway.add(_message("CONTACT-1-AAAAAA"))
            with gateway.transaction():
                gateway.add(_message("CONTACT-2-BBBBBB"))
        gateway.session.expire_all()
        assert gateway.scalar(select(ContactMessage.id).where(ContactMessage.message_id == "CONTACT-2-BBBBBB"))
        assert len(gateway.fetch_many(select(ContactMessage))) == 2


def test_parameters_are_bound(app, services):
    hostile = "x' OR '1'='1"
    with app.app_context():
        services.gateway.add(_message("CONTACT-1-AAAAAA"))
        found = services.gateway.fetch_one(select(ContactMessage).where(ContactMessage.message_id == hostile))

    assert found is None


def test_database_failure_becomes_persistence_error(app, services):
    with app.app_context():
        services.gateway.db.drop_all()

        with pytest.raises(PersistenceError):
            services.gateway.fetch_many(select(ContactMessage))

        assert services.gateway.ping() is True
