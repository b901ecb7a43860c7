"""Named rule sets, one per form kind."""

from __future__ import annotations

from models.contact_message import CONTACT_METHODS, CONTACT_STATUSES, INQUIRY_TYPES
from models.feedback import FEEDBACK_STATUSES, FEEDBACK_TYPES, RECOMMENDATIONS, SERVICES_USED
from models.newsletter_subscription import NEWSLETTER_PREFERENCES
from models.visa_application import VISA_STATUSES, VISA_TYPES
from validation.rules import (
    Each,
    Email,
    Field,
    FieldError,
    IntRange,
    IsoDate,
    Length,
    OneOf,
    Pattern,
    RuleSet,
)

PHONE_PATTERN = r"[+]?[1-9][0-9]{1,14}"
NAME_PATTERN = r"[a-zA-Z\s'-]+"
PASSPORT_PATTERN = r"[A-Z0-9]{6,20}"
APPLICATION_ID_PATTERN = r"UAE-[0-9]+-[A-Z0-9]+"
UNSUBSCRIBE_TOKEN_PATTERN = r"[0-9a-f]{64}"

YES_NO = ("yes", "no")

EMAIL_NORMALIZERS = (str.strip, str.lower)


def _name(name: str, optional: bool = False, label: str | None = None) -> Field:
    return Field(
        name,
        Length(2, 100),
        Pattern(NAME_PATTERN, "{label} can only contain letters, spaces, hyphens, and apostrophes"),
        optional=optional,
        label=label,
    )


def _email(name: str = "email") -> Field:
    return Field(name, Email(), normalize=EMAIL_NORMALIZERS, label="Email")


def _phone(name: str, optional: bool = False, label: str | None = None) -> Field:
    return Field(
        name,
        Pattern(PHONE_PATTERN, "Please provide a valid {label_lower}"),
        optional=optional,
        label=label,
    )


def _text(name: str, min: int | None = None, max: int = 1000, optional: bool = False) -> Field:
    return Field(name, Length(min, max), optional=optional)


def departure_after_arrival(data: dict, context) -> list[FieldError]:
    arrival = data.get("arrival_date")
    departure = data.get("departure_date")
    if arrival and departure and departure <= arrival:
        return [
            FieldError(
                "departure_date",
                "Departure date must be after arrival date",
                departure.isoformat(),
            )
        ]
    return []


def duration_matches_dates(data: dict, context) -> list[FieldError]:
    arrival = data.get("arrival_date")
    departure = data.get("departure_date")
    duration = data.get("duration_of_stay")
    if arrival is None or departure is None or duration is None:
        return []
    expected = (departure - arrival).days
    if duration != expected:
        return [
            FieldError(
                "duration_of_stay",
                f"Duration of stay ({duration} days) does not match the date range ({expected} days)",
                duration,
            )
        ]
    return []


VISA_APPLICATION = RuleSet(
    "visa_application",
    (
        _name("full_name"),
        _email(),
        _phone("phone", label="Phone number"),
        _text("nationality", 2, 50),
        Field(
            "passport_number",
            Length(6, 20, "Passport number must be between 6 and 20 characters"),
            Pattern(PASSPORT_PATTERN, "Passport number can only contain uppercase letters and numbers"),
            normalize=(str.strip, str.upper),
        ),
        Field("visa_type", OneOf(VISA_TYPES, "Please select a valid visa type")),
        _text("purpose_of_visit", 10, 500),
        Field("duration_of_stay", IntRange(1, 365, "Duration of stay must be between 1 and 365 days")),
        Field("arrival_date", IsoDate(future_only=True)),
        Field("departure_date", IsoDate(future_only=True)),
        _text("accommodation_details", max=500, optional=True),
        _text("sponsor_information", max=500, optional=True),
        Field(
            "previous_uae_visit",
            OneOf(YES_NO, "Please specify if you have visited UAE before"),
            label="Previous UAE visit",
        ),
        Field("criminal_record", OneOf(YES_NO, "Please specify if you have any criminal record")),
        _text("medical_conditions", max=500, optional=True),
        _name("emergency_contact_name"),
        _phone("emergency_contact_phone", label="Emergency contact phone number"),
        _text("emergency_contact_relationship", 2, 50),
    ),
    (departure_after_arrival, duration_matches_dates),
)

CONTACT = RuleSet(
    "contact",
    (
        _name("name"),
        _email(),
        _phone("phone", optional=True, label="Phone number"),
        _text("subject", 5, 200),
        _text("message", 10, 2000),
        Field("inquiry_type", OneOf(INQUIRY_TYPES, "Please select a valid inquiry type"), optional=True),
        Field(
            "preferred_contact_method",
            OneOf(CONTACT_METHODS, "Please select a valid contact method"),
            optional=True,
        ),
    ),
)

FEEDBACK = RuleSet(
    "feedback",
    (
        _name("name"),
        _email(),
        Field("service_used", OneOf(SERVICES_USED, "Please select a valid service type"), optional=True),
        Field("rating", IntRange(1, 5, "Rating must be between 1 and 5")),
        Field("feedback_type", OneOf(FEEDBACK_TYPES, "Please select a valid feedback type")),
        _text("subject", 5, 200),
        _text("message", 10, 2000),
        Field(
            "would_recommend",
            OneOf(RECOMMENDATIONS, "Please specify if you would recommend our services"),
        ),
        Field(
            "application_id",
            Pattern(APPLICATION_ID_PATTERN, "Please provide a valid application ID if applicable"),
            optional=True,
            label="Application ID",
        ),
    ),
)

_PREFERENCES = Each(OneOf(NEWSLETTER_PREFERENCES), message="Invalid preference option")

NEWSLETTER_SUBSCRIPTION = RuleSet(
    "newsletter_subscription",
    (
        _email(),
        _name("name", optional=True),
        Field("preferences", _PREFERENCES, optional=True),
    ),
)

NEWSLETTER_PREFERENCES_UPDATE = RuleSet(
    "newsletter_preferences",
    (_email(), Field("preferences", _PREFERENCES)),
)

NEWSLETTER_LOOKUP = RuleSet("newsletter_lookup", (_email(),))

NEWSLETTER_UNSUBSCRIBE = RuleSet(
    "newsletter_unsubscribe",
    (
        Field(
            "token",
            Pattern(UNSUBSCRIBE_TOKEN_PATTERN, "Invalid unsubscribe token"),
            required_message="Unsubscribe token is required",
        ),
    ),
)


def _status_update(name: str, statuses: tuple[str, ...], notes_field: str = "notes") -> RuleSet:
    return RuleSet(
        name,
        (
            Field("status", OneOf(statuses, "Invalid status")),
            Field(notes_field, Length(max=1000), optional=True),
        ),
    )


VISA_STATUS_UPDATE = _status_update("visa_status_update", VISA_STATUSES)
CONTACT_STATUS_UPDATE = _status_update("contact_status_update", CONTACT_STATUSES)
FEEDBACK_STATUS_UPDATE = _status_update("feedback_status_update", FEEDBACK_STATUSES, "admin_notes")

PAGINATION = RuleSet(
    "pagination",
    (
        Field("page", IntRange(1, 1_000_000, "Page must be a positive integer"), optional=True),
        Field("limit", IntRange(1, 100, "Limit must be between 1 and 100"), optional=True),
    ),
)

RULESETS = {
    ruleset.name: ruleset
    for ruleset in (
        VISA_APPLICATION,
        CONTACT,
        FEEDBACK,
        NEWSLETTER_SUBSCRIPTION,
        NEWSLETTER_PREFERENCES_UPDATE,
        NEWSLETTER_UNSUBSCRIBE,
        NEWSLETTER_LOOKUP,
        VISA_STATUS_UPDATE,
        CONTACT_STATUS_UPDATE,
        FEEDBACK_STATUS_UPDATE,
        PAGINATION,
    )
}
