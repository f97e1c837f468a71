"""Normalization and validation of contact form submissions"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .rules import MAX_FIELD_LENGTH, RULES, FieldRule, is_affirmative


@dataclass(frozen=True)
class Submission:
    name: str
    email: str
    message: str
    consent: bool
    captcha_token: str


@dataclass(frozen=True)
class Valid:
    submission: Submission


@dataclass(frozen=True)
class Invalid:
    errors: tuple[str, ...]


ValidationResult = Valid | Invalid


def _pick(raw: Mapping[str, Any], rule: FieldRule) -> Any:
    for alias in rule.aliases:
        if (value := raw.get(alias)) is not None:
            return value
    return None


def _text(value: Any) -> str:
    if isinstance(value, str):
        text = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        text = str(value)
    else:
        return ""
    return text[:MAX_FIELD_LENGTH].strip()


def normalize(raw: Mapping[str, Any]) -> dict[str, str | bool]:
    """
    Extract the form fields from a request body.

    Every field of the rule table is looked up by its aliases, text is bounded and trimmed
    and the consent flag is reduced to a boolean. Unknown keys are dropped.
    """

    fields: dict[str, str | bool] = {}
    for rule in RULES:
        value = _pick(raw, rule)
        fields[rule.name] = is_affirmative(value) if rule.affirmative else _text(value)
    return fields


def check_fields(raw: Mapping[str, Any]) -> dict[str, str]:
    """Return the violation message of every invalid field, in rule order."""

    fields = normalize(raw)
    errors: dict[str, str] = {}
    for rule in RULES:
        if (error := rule.check(fields.get(rule.name, ""))) is not None:
            errors[rule.name] = error
    return errors


def validate(raw: Mapping[str, Any]) -> ValidationResult:
    fields = normalize(raw)
    if errors := check_fields(fields):
        return Invalid(tuple(errors.values()))

    return Valid(
        Submission(
            name=fields["name"],
            email=fields["email"],
            message=fields["message"],
            consent=fields["consent"],
            captcha_token=fields["captcha_token"],
        )
    )
