from pydantic import BaseModel, Field


class ContactForm(BaseModel):
    """Documentation model of the request body; the handler also accepts the field aliases as form data."""

    name: str = Field(description="Full name of the sender (2-100 characters)")
    email: str = Field(description="Email of the sender, used as reply-to")
    message: str = Field(description="Content of the message (10-2000 characters)")
    agree: bool = Field(description="Consent to the terms of service (`consent` is accepted too)")
    recaptchaResponse: str = Field(description="Recaptcha response token")  # noqa: N815


class ContactResponse(BaseModel):
    success: bool = Field(description="Whether the message has been sent")
    message: str = Field(description="Human readable outcome")
    timestamp: str | None = Field(None, description="Time of the submission (ISO 8601)")
    errors: list[str] | None = Field(None, description="One message per invalid field")
    error_id: str | None = Field(None, description="Correlation id of a server side failure")


class Rule(BaseModel):
    name: str
    aliases: list[str]
    required_message: str
    invalid_message: str | None
    min_length: int | None
    max_length: int | None
    pattern: str | None
    affirmative: bool


class RulesResponse(BaseModel):
    rules: list[Rule]
