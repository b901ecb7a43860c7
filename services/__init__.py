"""Submission services, built once per application and shared by the routes."""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from mail import NotificationDispatcher
from storage import AbstractStorage, PersistenceGateway

from .base import Page, SubmissionService, generate_identifier
from .contact import ContactService
from .feedback import FeedbackService
from .newsletter import NewsletterService, SubscribeOutcome
from .visa import VisaApplicationService

EXTENSION_KEY = "visa_portal"


@dataclass
class Services:
    gateway: PersistenceGateway
    dispatcher: NotificationDispatcher
    storage: AbstractStorage
    visa: VisaApplicationService
    contact: ContactService
    feedback: FeedbackService
    newsletter: NewsletterService

    @classmethod
    def build(cls, gateway, dispatcher, storage, config, **kwargs) -> "Services":
        return cls(
            gateway=gateway,
            dispatcher=dispatcher,
            storage=storage,
            visa=VisaApplicationService(gateway, dispatcher, storage, config, **kwargs),
            contact=ContactService(gateway, dispatcher, config, **kwargs),
            feedback=FeedbackService(gateway, dispatcher, config, **kwargs),
            newsletter=NewsletterService(gateway, dispatcher, config, **kwargs),
        )


def get_services() -> Services:
    return current_app.extensions[EXTENSION_KEY]


__all__ = [
    "ContactService",
    "EXTENSION_KEY",
    "FeedbackService",
    "NewsletterService",
    "Page",
    "Services",
    "SubmissionService",
    "SubscribeOutcome",
    "VisaApplicationService",
    "generate_identifier",
    "get_services",
]
