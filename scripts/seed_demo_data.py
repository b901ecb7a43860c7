"""Seed one demo record of every kind for local development."""

from __future__ import annotations

import sys
from datetime import timedelta
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from sqlalchemy import select

from app import create_app
from models import (
    ApplicationStatusLog,
    ContactMessage,
    Feedback,
    NewsletterSubscription,
    VisaApplication,
    utcnow,
)
from services import generate_identifier, get_services
from services.newsletter import generate_unsubscribe_token

DEMO_EMAIL = "demo.applicant@example.com"


def seed_visa_application(gateway) -> str:
    existing = gateway.fetch_one(select(VisaApplication).where(VisaApplication.email == DEMO_EMAIL))
    if existing is not None:
        return existing.application_id

    today = utcnow().date()
    arrival = today + timedelta(days=30)
    application_id = generate_identifier("UAE", 9)
    gateway.add(
        VisaApplication(
            application_id=application_id,
            full_name="Demo Applicant",
            email=DEMO_EMAIL,
            phone="+971501234567",
            nationality="Canadian",
            passport_number="DEMO12345",
            visa_type="tourist",
            purpose_of_visit="Family holiday and sightseeing in Dubai",
            duration_of_stay=10,
            arrival_date=arrival,
            departure_date=arrival + timedelta(days=10),
            previous_uae_visit="no",
            criminal_record="no",
            emergency_contact_name="Demo Contact",
            emergency_contact_phone="+14165550100",
            emergency_contact_relationship="Spouse",
        ),
        ApplicationStatusLog(
            application_id=application_id,
            old_status=None,
            new_status="pending",
            notes="Seeded demo application",
        ),
    )
    return application_id


def seed_contact_message(gateway) -> str:
    existing = gateway.fetch_one(select(ContactMessage).where(ContactMessage.email == DEMO_EMAIL))
    if existing is not None:
        return existing.message_id

    message_id = generate_identifier("CONTACT")
    gateway.add(
        ContactMessage(
            message_id=message_id,
            name="Demo Applicant",
            email=DEMO_EMAIL,
            inquiry_type="visa_inquiry",
            subject="Processing times",
            message="How long does a tourist visa usually take to process?",
        )
    )
    return message_id


def seed_feedback(gateway, application_id: str) -> str:
    existing = gateway.fetch_one(select(Feedback).where(Feedback.email == DEMO_EMAIL))
    if existing is not None:
        return existing.feedback_id

    feedback_id = generate_identifier("FB")
    gateway.add(
        Feedback(
            feedback_id=feedback_id,
            name="Demo Applicant",
            email=DEMO_EMAIL,
            service_used="visa_application",
            rating=5,
            feedback_type="compliment",
            subject="Smooth application",
            message="The application form was clear and quick to complete.",
            would_recommend="yes",
            application_id=application_id,
        )
    )
    return feedback_id


def seed_newsletter(gateway) -> str:
    existing = gateway.fetch_one(
        select(NewsletterSubscription).where(NewsletterSubscription.email == DEMO_EMAIL)
    )
    if existing is not None:
        return existing.subscription_id

    subscription_id = generate_identifier("NL")
    gateway.add(
        NewsletterSubscription(
            subscription_id=subscription_id,
            email=DEMO_EMAIL,
            name="Demo Applicant",
            preferences=["visa_updates", "travel_tips"],
            unsubscribe_token=generate_unsubscribe_token(),
        )
    )
    return subscription_id


def main(app=None) -> None:
    app = app or create_app()
    with app.app_context():
        gateway = get_services().gateway
        application_id = seed_visa_application(gateway)
        print(f"Visa application: {application_id}")
        print(f"Contact message: {seed_contact_message(gateway)}")
        print(f"Feedback: {seed_feedback(gateway, application_id)}")
        print(f"Newsletter subscription: {seed_newsletter(gateway)}")


if __name__ == "__main__":
    main()
