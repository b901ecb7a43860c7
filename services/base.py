"""Shared plumbing for the submission services."""

from __future__ import annotations

import math
import secrets
import string
import time
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Callable, Mapping

from sqlalchemy import func, select

from mail import NotificationDispatcher
from models import utcnow
from storage import PersistenceGateway
from utils.errors import NotFoundError, ValidationError
from validation import RuleSet, validate

BASE36_ALPHABET = string.digits + string.ascii_uppercase

TREND_WINDOW = timedelta(days=365)


def generate_identifier(prefix: str, suffix_length: int = 6, clock: Callable[[], float] = time.time) -> str:
    """Return ``<prefix>-<epoch millis>-<random base36>``.

    Collisions are not re-checked against the store; the unique column
    rejects the rare duplicate.
    """

    millis = int(clock() * 1000)
    suffix = "".join(secrets.choice(BASE36_ALPHABET) for _ in range(suffix_length))
    return f"{prefix}-{millis}-{suffix}"


def display_date(value: date | None) -> str | None:
    return value.strftime("%B %d, %Y") if value else None


def display_timestamp(value: datetime) -> str:
    return value.strftime("%B %d, %Y at %H:%M")


def iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value else None


def rounded(value, digits: int) -> float:
    return round(float(value), digits) if value is not None else 0


def percentage(part: int, whole: int) -> float:
    return round(part / whole * 100, 1) if whole else 0


@dataclass(frozen=True)
class Page:
    items: list
    page: int
    per_page: int
    total: int
    sort_by: str
    sort_order: str

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.per_page)

    def pagination(self) -> dict:
        return {
            "current_page": self.page,
            "per_page": self.per_page,
            "total": self.total,
            "total_pages": self.total_pages,
        }

    def sorting(self) -> dict:
        return {"sort_by": self.sort_by, "sort_order": self.sort_order}


class SubmissionService:
    """Base class wiring a service to the gateway, dispatcher and clock.

    Subclasses name their model, public identifier column, filterable columns
    and sort allow-list; listing, lookup and the aggregate helpers are shared.
    """

    model: Any = None
    identifier_field = ""
    filter_fields: tuple[str, ...] = ()
    sort_columns: tuple[str, ...] = ("created_at",)
    default_limit = 20
    not_found_message = "Record not found"
    not_found_code = "NOT_FOUND"

    def __init__(
        self,
        gateway: PersistenceGateway,
        dispatcher: NotificationDispatcher,
        config: Mapping[str, Any] | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.gateway = gateway
        self.dispatcher = dispatcher
        self.config = config or {}
        self.clock = clock

    @property
    def admin_email(self) -> str | None:
        return self.config.get("ADMIN_EMAIL")

    def today(self) -> date:
        return self.clock().date()

    def validated(self, ruleset: str | RuleSet, payload: Mapping[str, Any]) -> dict:
        """Return normalized data or raise ValidationError listing every failing field."""

        result = validate(ruleset, payload, today=self.today())
        if not result.ok:
            raise ValidationError(result.errors)
        return result.data

    # Lookups -------------------------------------------------------------

    @property
    def identifier_column(self):
        return getattr(self.model, self.identifier_field)

    def find(self, identifier: str):
        return self.gateway.fetch_one(select(self.model).where(self.identifier_column == identifier))

    def require(self, identifier: str):
        record = self.find(identifier)
        if record is None:
            raise NotFoundError(self.not_found_message, code=self.not_found_code)
        return record

    # Listing -------------------------------------------------------------

    def resolve_sort(self, sort_by: str | None, sort_order: str | None) -> tuple[str, str]:
        """Map caller input onto the allow-list; anything else is created_at DESC."""

        if sort_by not in self.sort_columns:
            return "created_at", "desc"
        direction = (sort_order or "desc").lower()
        return sort_by, "asc" if direction == "asc" else "desc"

    def filter_conditions(self, filters: Mapping[str, Any] | None) -> list:
        conditions = []
        for name, value in (filters or {}).items():
            if name in self.filter_fields and value not in (None, ""):
                conditions.append(getattr(self.model, name) == value)
        return conditions

    def paginate(
        self,
        conditions: list,
        page: Any = None,
        limit: Any = None,
        sort_by: str | None = None,
        sort_order: str | None = None,
    ) -> Page:
        params = self.validated("pagination", {"page": page, "limit": limit})
        page = params.get("page", 1)
        limit = params.get("limit", self.default_limit)
        sort_by, sort_order = self.resolve_sort(sort_by, sort_order)

        column = getattr(self.model, sort_by)
        tiebreak = self.model.id
        ordering = (column.asc(), tiebreak.asc()) if sort_order == "asc" else (column.desc(), tiebreak.desc())

        items = self.gateway.fetch_many(
            select(self.model).where(*conditions).order_by(*ordering).limit(limit).offset((page - 1) * limit)
        )
        total = self.gateway.scalar(select(func.count()).select_from(self.model).where(*conditions))
        return Page(items, page, limit, total or 0, sort_by, sort_order)

    # Aggregates ----------------------------------------------------------

    def count_by(self, column, *conditions) -> dict:
        rows = self.gateway.fetch_rows(
            select(column.label("key"), func.count().label("count"))
            .where(column.isnot(None), *conditions)
            .group_by(column)
            .order_by(func.count().desc())
        )
        return {row["key"]: row["count"] for row in rows}

    def count(self, *conditions) -> int:
        return self.gateway.scalar(select(func.count()).select_from(self.model).where(*conditions)) or 0

    def since(self, days: int) -> datetime:
        return self.clock() - timedelta(days=days)

    def monthly_trends(self, *columns) -> list[dict]:
        """Per-month buckets over the trailing twelve months, newest first."""

        month = func.strftime("%Y-%m", self.model.created_at).label("month")
        return self.gateway.fetch_rows(
            select(month, func.count().label("count"), *columns)
            .where(self.model.created_at >= self.clock() - TREND_WINDOW)
            .group_by(month)
            .order_by(month.desc())
        )
