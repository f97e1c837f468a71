"""Field rules of the contact form, shared by the server and the client"""

import re
from dataclasses import dataclass, field
from typing import Any


EMAIL_REGEX = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"

AFFIRMATIVE_VALUES = frozenset({"on", "true", "1", "yes"})


@dataclass(frozen=True)
class FieldRule:
    name: str
    aliases: tuple[str, ...]
    required_message: str
    invalid_message: str | None = None
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    affirmative: bool = False
    _regex: re.Pattern[str] | None = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.pattern:
            object.__setattr__(self, "_regex", re.compile(self.pattern))

    def check(self, value: str | bool) -> str | None:
        """Return the violation message for `value`, or None if it satisfies the rule."""

        if self.affirmative:
            return None if value is True else self.required_message

        text = value if isinstance(value, str) else ""
        if not text:
            return self.required_message
        if self.min_length is not None and len(text) < self.min_length:
            return self.invalid_message
        if self.max_length is not None and len(text) > self.max_length:
            return self.invalid_message
        if self._regex and not self._regex.match(text):
            return self.invalid_message
        return None

    @property
    def serialize(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "aliases": list(self.aliases),
            "required_message": self.required_message,
            "invalid_message": self.invalid_message,
            "min_length": self.min_length,
            "max_length": self.max_length,
            "pattern": self.pattern,
            "affirmative": self.affirmative,
        }


RULES: tuple[FieldRule, ...] = (
    FieldRule(
        name="name",
        aliases=("name",),
        required_message="Name is required",
        invalid_message="Name must be between 2 and 100 characters",
        min_length=2,
        max_length=100,
    ),
    FieldRule(
        name="email",
        aliases=("email",),
        required_message="Email is required",
        invalid_message="Valid email address is required",
        max_length=254,
        pattern=EMAIL_REGEX,
    ),
    FieldRule(
        name="message",
        aliases=("message",),
        required_message="Message is required",
        invalid_message="Message must be between 10 and 2000 characters",
        min_length=10,
        max_length=2000,
    ),
    FieldRule(
        name="consent",
        aliases=("consent", "agree"),
        required_message="You must agree to the Terms of Service",
        affirmative=True,
    ),
    FieldRule(
        name="captcha_token",
        aliases=("captcha_token", "recaptchaResponse", "recaptcha_response", "g-recaptcha-response"),
        required_message="reCAPTCHA verification is required",
    ),
)

# raw input is cut to this length before trimming and checking
MAX_FIELD_LENGTH = 4 * max(rule.max_length or 0 for rule in RULES)


def is_affirmative(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in AFFIRMATIVE_VALUES
    return False
