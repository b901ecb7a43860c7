"""Newsletter subscriptions: subscribe, reactivate, unsubscribe and preferences."""

from __future__ import annotations

import logging
import secrets
from collections import Counter
from dataclasses import dataclass

from sqlalchemy import case, func, select, update

from models import NEWSLETTER_PREFERENCES, NewsletterSubscription
from utils.errors import DuplicateError, InvalidTokenError, NotFoundError

from .base import SubmissionService, display_timestamp, generate_identifier, iso, percentage

logger = logging.getLogger(__name__)

LIST_STATUSES = ("active", "unsubscribed", "all")
BENEFITS = [
    "Get the latest visa updates and policy changes",
    "Receive travel tips and destination guides",
    "Be the first to know about special promotions",
    "Stay informed about UAE immigration news",
]


def generate_unsubscribe_token() -> str:
    return secrets.token_hex(32)


@dataclass(frozen=True)
class SubscribeOutcome:
    status: str
    message: str
    data: dict

    @property
    def created(self) -> bool:
        return self.status == "subscribed"


class NewsletterService(SubmissionService):
    model = NewsletterSubscription
    identifier_field = "subscription_id"
    sort_columns = ("created_at", "updated_at", "email", "name")
    default_limit = 50

    def unsubscribe_url(self, token: str) -> str:
        return f"{self.config.get('FRONTEND_URL', 'http://localhost:3000')}/unsubscribe?token={token}"

    def find_by_email(self, email: str) -> NewsletterSubscription | None:
        return self.gateway.fetch_one(select(NewsletterSubscription).where(NewsletterSubscription.email == email))

    def _already_subscribed(self, subscription: NewsletterSubscription) -> SubscribeOutcome:
        return SubscribeOutcome(
            "already_subscribed",
            "You are already subscribed to our newsletter",
            {
                "email": subscription.email,
                "status": "already_subscribed",
                "subscribed_since": iso(subscription.created_at),
            },
        )

    def subscribe(self, payload) -> SubscribeOutcome:
        """Create, reactivate or acknowledge a subscription; never a second row per email."""

        data = self.validated("newsletter_subscription", payload)
        email = data["email"]
        existing = self.find_by_email(email)
        if existing is not None and existing.is_active:
            return self._already_subscribed(existing)
        if existing is not None:
            return self._reactivate(existing, data)

        now = self.clock()
        token = generate_unsubscribe_token()
        subscription_id = generate_identifier("NL")
        preferences = data.get("preferences", [])
        try:
            self.gateway.add(
                NewsletterSubscription(
                    subscription_id=subscription_id,
                    email=email,
                    name=data.get("name"),
                    preferences=preferences,
                    is_active=True,
                    unsubscribe_token=token,
                    created_at=now,
                    updated_at=now,
                )
            )
        except DuplicateError:
            # Lost a race with a concurrent subscribe for the same email.
            winner = self.find_by_email(email)
            if winner is None:
                raise
            logger.info("Concurrent newsletter subscription for %s resolved as duplicate", email)
            return self._already_subscribed(winner)
        logger.info("Newsletter subscription %s created", subscription_id)

        subscribed_at = display_timestamp(now)
        self.dispatcher.notify(
            email,
            "Welcome to UAE Visa Services Newsletter!",
            "newsletter-welcome",
            {
                "name": data.get("name") or "Subscriber",
                "email": email,
                "preferences": preferences,
                "unsubscribe_url": self.unsubscribe_url(token),
                "subscribed_at": subscribed_at,
            },
        )
        self.dispatcher.notify(
            self.admin_email,
            f"New Newsletter Subscription - {email}",
            "new-newsletter-subscription-admin",
            {
                "subscription_id": subscription_id,
                "email": email,
                "name": data.get("name") or "Not provided",
                "preferences": preferences,
                "subscribed_at": subscribed_at,
            },
        )

        return SubscribeOutcome(
            "subscribed",
            "Successfully subscribed to our newsletter!",
            {
                "subscription_id": subscription_id,
                "email": email,
                "status": "subscribed",
                "preferences": preferences,
                "subscribed_at": iso(now),
                "benefits": BENEFITS,
            },
        )

    def _reactivate(self, subscription: NewsletterSubscription, data: dict) -> SubscribeOutcome:
        """Reuse the existing row and subscription id with a fresh unsubscribe token."""

        now = self.clock()
        token = generate_unsubscribe_token()
        values = {"is_active": True, "unsubscribe_token": token, "unsubscribed_at": None, "updated_at": now}
        if "name" in data:
            values["name"] = data["name"]
        if "preferences" in data:
            values["preferences"] = data["preferences"]
        self.gateway.execute(
            update(NewsletterSubscription).where(NewsletterSubscription.id == subscription.id).values(**values)
        )
        logger.info("Newsletter subscription %s reactivated", subscription.subscription_id)

        preferences = list(subscription.preferences or [])
        self.dispatcher.notify(
            subscription.email,
            "Newsletter Subscription Reactivated - UAE Visa Services",
            "newsletter-reactivated",
            {
                "name": subscription.name or "Subscriber",
                "email": subscription.email,
                "preferences": preferences,
                "unsubscribe_url": self.unsubscribe_url(token),
                "reactivated_at": display_timestamp(now),
            },
        )
        return SubscribeOutcome(
            "reactivated",
            "Your newsletter subscription has been reactivated",
            {
                "subscription_id": subscription.subscription_id,
                "email": subscription.email,
                "status": "reactivated",
                "preferences": preferences,
            },
        )

    def unsubscribe(self, token: str | None) -> dict:
        data = self.validated("newsletter_unsubscribe", {"token": token})
        subscription = self.gateway.fetch_one(
            select(NewsletterSubscription).where(
                NewsletterSubscription.unsubscribe_token == data["token"],
                NewsletterSubscription.is_active.is_(True),
            )
        )
        if subscription is None:
            raise InvalidTokenError("Invalid or expired unsubscribe token")

        now = self.clock()
        self.gateway.execute(
            update(NewsletterSubscription)
            .where(NewsletterSubscription.id == subscription.id)
            .values(is_active=False, unsubscribed_at=now, updated_at=now)
        )
        logger.info("Newsletter subscription %s deactivated", subscription.subscription_id)

        self.dispatcher.notify(
            subscription.email,
            "Newsletter Unsubscription Confirmed - UAE Visa Services",
            "newsletter-unsubscribed",
            {
                "name": subscription.name or "Subscriber",
                "email": subscription.email,
                "unsubscribed_at": display_timestamp(now),
                "resubscribe_url": f"{self.config.get('FRONTEND_URL', 'http://localhost:3000')}/newsletter",
            },
        )
        return {
            "email": subscription.email,
            "status": "unsubscribed",
            "unsubscribed_at": iso(now),
            "message": "We're sorry to see you go! You can resubscribe anytime.",
        }

    def update_preferences(self, email: str | None, preferences) -> dict:
        data = self.validated("newsletter_preferences", {"email": email, "preferences": preferences})
        subscription = self.find_by_email(data["email"])
        if subscription is None or not subscription.is_active:
            raise NotFoundError("Active subscription not found for this email", code="SUBSCRIPTION_NOT_FOUND")

        old_preferences = list(subscription.preferences or [])
        now = self.clock()
        self.gateway.execute(
            update(NewsletterSubscription)
            .where(NewsletterSubscription.id == subscription.id)
            .values(preferences=data["preferences"], updated_at=now)
        )

        self.dispatcher.notify(
            subscription.email,
            "Newsletter Preferences Updated - UAE Visa Services",
            "newsletter-preferences-updated",
            {
                "name": subscription.name or "Subscriber",
                "email": subscription.email,
                "old_preferences": old_preferences,
                "new_preferences": data["preferences"],
                "updated_at": display_timestamp(now),
                "unsubscribe_url": self.unsubscribe_url(subscription.unsubscribe_token),
            },
        )
        return {"email": subscription.email, "preferences": data["preferences"], "updated_at": iso(now)}

    def get_subscription(self, email: str) -> dict:
        data = self.validated("newsletter_lookup", {"email": email})
        subscription = self.find_by_email(data["email"])
        if subscription is None:
            return {
                "email": data["email"],
                "subscribed": False,
                "message": "Email not found in our newsletter database",
            }
        payload = subscription.to_dict()
        payload["subscribed_at"] = payload["created_at"]
        payload["last_updated"] = payload["updated_at"]
        return payload

    def list(self, status: str | None = "active", page=None, limit=None, sort_by=None, sort_order=None) -> dict:
        status = status if status in LIST_STATUSES else "active"
        conditions = []
        if status != "all":
            conditions.append(NewsletterSubscription.is_active.is_(status == "active"))
        result = self.paginate(conditions, page, limit, sort_by, sort_order)
        return {
            "subscriptions": [subscription.to_dict() for subscription in result.items],
            "pagination": result.pagination(),
            "filters": {"status": status},
            "sorting": result.sorting(),
        }

    def stats(self) -> dict:
        total = self.count()
        active = self.count(NewsletterSubscription.is_active.is_(True))
        unsubscribed = total - active

        active_in_month = func.count(case((NewsletterSubscription.is_active.is_(True), 1))).label("active_in_month")
        trends = [
            {"month": row["month"], "new_subscriptions": row["count"], "active_in_month": row["active_in_month"]}
            for row in self.monthly_trends(active_in_month)
        ]

        preference_counts = Counter({preference: 0 for preference in NEWSLETTER_PREFERENCES})
        for preferences in self.gateway.fetch_many(
            select(NewsletterSubscription.preferences).where(NewsletterSubscription.is_active.is_(True))
        ):
            preference_counts.update(item for item in preferences or [] if item in preference_counts)

        window = self.since(30)
        new_recent = self.count(NewsletterSubscription.created_at >= window)
        unsubscribed_recent = self.count(
            NewsletterSubscription.is_active.is_(False),
            NewsletterSubscription.unsubscribed_at >= window,
        )
        return {
            "overview": {
                "total_subscriptions": total,
                "active_subscriptions": active,
                "unsubscribed_count": unsubscribed,
                "retention_rate": percentage(active, total),
            },
            "monthly_trends": trends,
            "preference_breakdown": dict(preference_counts),
            "recent_activity": {
                "new_subscriptions_last_30_days": new_recent,
                "unsubscriptions_last_30_days": unsubscribed_recent,
                "net_growth_last_30_days": new_recent - unsubscribed_recent,
            },
        }
