"""Form validation: declarative rules evaluated into a result value."""

from __future__ import annotations

from datetime import date
from typing import Any, Mapping

from .rules import FieldError, RuleSet, ValidationResult
from .rulesets import RULESETS


def validate(
    ruleset: str | RuleSet,
    payload: Mapping[str, Any],
    today: date | None = None,
) -> ValidationResult:
    """Validate ``payload`` against a named (or explicit) rule set."""

    if isinstance(ruleset, str):
        ruleset = RULESETS[ruleset]
    return ruleset.validate(payload, today=today)


__all__ = ["FieldError", "RuleSet", "ValidationResult", "RULESETS", "validate"]
