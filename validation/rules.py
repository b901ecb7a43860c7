"""Declarative field rules and the validation result type.

A :class:`RuleSet` is a list of :class:`Field` definitions plus optional
cross-field checks. Evaluating it never raises for a rejected submission: the
outcome is a :class:`ValidationResult` holding either the normalized record or
every :class:`FieldError` that was found.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Callable, Iterable, Mapping, Sequence

MISSING = object()


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str
    value: Any = None

    def to_dict(self) -> dict:
        return {"field": self.field, "message": self.message, "value": self.value}


@dataclass
class ValidationResult:
    """Either accepted ``data`` or a non-empty list of ``errors``, never both."""

    data: dict | None = None
    errors: list[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @classmethod
    def success(cls, data: dict) -> "ValidationResult":
        return cls(data=data, errors=[])

    @classmethod
    def failure(cls, errors: Iterable[FieldError]) -> "ValidationResult":
        return cls(data=None, errors=list(errors))

    def fields(self) -> list[str]:
        return [error.field for error in self.errors]


@dataclass(frozen=True)
class ValidationContext:
    today: date
    payload: Mapping[str, Any]


class Rule:
    """A single check on an already-normalized value.

    ``check`` returns ``(value, message)``; a non-empty message is a failure.
    Rules may coerce the value (e.g. a numeric string into an ``int``).
    """

    message = "{label} is invalid"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message

    def check(self, value: Any, context: ValidationContext) -> tuple[Any, str | None]:
        raise NotImplementedError

    def fail(self, value: Any) -> tuple[Any, str]:
        return value, self.message


class Length(Rule):
    def __init__(self, min: int | None = None, max: int | None = None, message: str | None = None):
        self.min = min
        self.max = max
        if message is None:
            if min is not None and max is not None:
                message = f"{{label}} must be between {min} and {max} characters"
            elif max is not None:
                message = f"{{label}} cannot exceed {max} characters"
            else:
                message = f"{{label}} must be at least {min} characters"
        super().__init__(message)

    def check(self, value, context):
        if not isinstance(value, str):
            return value, "{label} must be text"
        if self.min is not None and len(value) < self.min:
            return self.fail(value)
        if self.max is not None and len(value) > self.max:
            return self.fail(value)
        return value, None


class Pattern(Rule):
    def __init__(self, pattern: str, message: str | None = None):
        super().__init__(message)
        self.regex = re.compile(pattern)

    def check(self, value, context):
        if not isinstance(value, str) or not self.regex.fullmatch(value):
            return self.fail(value)
        return value, None


class Email(Pattern):
    message = "Please provide a valid email address"

    def __init__(self, max_length: int = 255, message: str | None = None):
        super().__init__(r"[^\s@]+@[^\s@]+\.[^\s@]+", message)
        self.max_length = max_length

    def check(self, value, context):
        value, error = super().check(value, context)
        if error:
            return value, error
        if len(value) > self.max_length:
            return value, f"Email cannot exceed {self.max_length} characters"
        return value, None


class IntRange(Rule):
    """Integer within ``[min, max]``; non-numeric input fails."""

    def __init__(self, min: int, max: int, message: str | None = None):
        self.min = min
        self.max = max
        super().__init__(message or f"{{label}} must be a number between {min} and {max}")

    def check(self, value, context):
        if isinstance(value, bool):
            return self.fail(value)
        if isinstance(value, str):
            if not re.fullmatch(r"[+-]?[0-9]+", value):
                return self.fail(value)
            value = int(value)
        if not isinstance(value, int):
            return self.fail(value)
        if value < self.min or value > self.max:
            return self.fail(value)
        return value, None


class OneOf(Rule):
    def __init__(self, choices: Sequence[str], message: str | None = None):
        self.choices = tuple(choices)
        super().__init__(message or "{label} must be one of: " + ", ".join(self.choices))

    def check(self, value, context):
        if value not in self.choices:
            return self.fail(value)
        return value, None


class IsoDate(Rule):
    """ISO-8601 calendar date, optionally constrained relative to today.

    Time-of-day components are accepted and discarded.
    """

    message = "Please provide a valid {label_lower}"

    def __init__(self, future_only: bool = False, past_only: bool = False, message: str | None = None):
        super().__init__(message)
        self.future_only = future_only
        self.past_only = past_only

    @staticmethod
    def parse(value: Any) -> date | None:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if not isinstance(value, str):
            return None
        try:
            return datetime.fromisoformat(value.strip()).date()
        except ValueError:
            return None

    def check(self, value, context):
        parsed = self.parse(value)
        if parsed is None:
            return self.fail(value)
        if self.future_only and parsed < context.today:
            return value, "{label} cannot be in the past"
        if self.past_only and parsed > context.today:
            return value, "{label} cannot be in the future"
        return parsed, None


class Each(Rule):
    """Apply ``rule`` to every element of a list; one bad element fails the field."""

    def __init__(self, rule: Rule, max_items: int | None = None, message: str | None = None):
        super().__init__(message)
        self.rule = rule
        self.max_items = max_items
        self.item_message = message

    def check(self, value, context):
        if not isinstance(value, (list, tuple)):
            return value, "{label} must be an array"
        if self.max_items is not None and len(value) > self.max_items:
            return value, f"{{label}} cannot contain more than {self.max_items} items"
        cleaned = []
        for item in value:
            item_value, error = self.rule.check(item, context)
            if error:
                return value, self.item_message or error
            cleaned.append(item_value)
        return cleaned, None


class Unique(Rule):
    """Fails when ``exists(value, exclude)`` reports the value is already stored.

    ``exclude_field`` names a payload key whose value identifies the record
    being validated, so it does not collide with itself.
    """

    message = "{label} is already in use"

    def __init__(
        self,
        exists: Callable[[Any, Any], bool],
        exclude_field: str | None = None,
        message: str | None = None,
    ):
        super().__init__(message)
        self.exists = exists
        self.exclude_field = exclude_field

    def check(self, value, context):
        exclude = context.payload.get(self.exclude_field) if self.exclude_field else None
        if self.exists(value, exclude):
            return self.fail(value)
        return value, None


def _is_absent(value: Any) -> bool:
    return value is MISSING or value is None or (isinstance(value, str) and value == "")


class Field:
    """A named input with normalizers and an ordered list of rules."""

    def __init__(
        self,
        name: str,
        *rules: Rule,
        optional: bool = False,
        normalize: Sequence[Callable[[str], str]] = (str.strip,),
        label: str | None = None,
        required_message: str | None = None,
    ):
        self.name = name
        self.rules = list(rules)
        self.optional = optional
        self.normalize = tuple(normalize)
        self.label = label or name.replace("_", " ").capitalize()
        self.required_message = required_message

    def with_rules(self, *rules: Rule) -> "Field":
        clone = Field(
            self.name,
            *self.rules,
            *rules,
            optional=self.optional,
            normalize=self.normalize,
            label=self.label,
            required_message=self.required_message,
        )
        return clone

    def _format(self, message: str) -> str:
        return message.format(label=self.label, label_lower=self.label.lower())

    def evaluate(self, context: ValidationContext) -> tuple[Any, FieldError | None]:
        raw = context.payload.get(self.name, MISSING)
        value = raw
        if isinstance(value, str):
            for normalizer in self.normalize:
                value = normalizer(value)

        if _is_absent(value):
            if self.optional:
                return MISSING, None
            message = self.required_message or f"{self.label} is required"
            return MISSING, FieldError(self.name, message, None if raw is MISSING else raw)

        for rule in self.rules:
            try:
                value, message = rule.check(value, context)
            except (TypeError, ValueError):
                message = rule.message
            if message:
                return MISSING, FieldError(self.name, self._format(message), None if raw is MISSING else raw)
        return value, None


CrossFieldCheck = Callable[[dict, ValidationContext], Iterable[FieldError]]


@dataclass(frozen=True)
class RuleSet:
    name: str
    fields: tuple[Field, ...]
    checks: tuple[CrossFieldCheck, ...] = ()

    def with_rules(self, field_name: str, *rules: Rule) -> "RuleSet":
        """Return a copy with extra rules appended to one field."""

        fields = tuple(
            item.with_rules(*rules) if item.name == field_name else item for item in self.fields
        )
        return replace(self, fields=fields)

    def validate(self, payload: Mapping[str, Any], today: date | None = None) -> ValidationResult:
        context = ValidationContext(today=today or date.today(), payload=payload or {})
        data: dict[str, Any] = {}
        errors: list[FieldError] = []

        for item in self.fields:
            value, error = item.evaluate(context)
            if error is not None:
                errors.append(error)
            elif value is not MISSING:
                data[item.name] = value

        for check in self.checks:
            errors.extend(check(data, context))

        if errors:
            return ValidationResult.failure(errors)
        return ValidationResult.success(data)
