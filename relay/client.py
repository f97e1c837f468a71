"""
Client side of the contact form.

`ContactFormClient` mirrors what the browser script does around a submission: it checks the
fields with the shared rule table, keeps the reCAPTCHA token handed over by the widget
callbacks, permits one submission at a time and turns every response (including timeouts and
non-JSON bodies) into a `SubmissionResult`. The server remains the authority: a local check
only saves a round trip.
"""

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx

from .logger import get_logger
from .validation import check_fields


logger = get_logger(__name__)

SERVICE_NAME = "Contact Relay"


class Messages:
    SUCCESS = "Thank you! Your message has been sent successfully. We'll get back to you soon."
    ERROR = "An error occurred while processing your request. Please try again or contact us directly."
    RECAPTCHA_REQUIRED = "Please complete the reCAPTCHA verification."
    VALIDATION_FAILED = "Please check your form inputs and try again."
    RATE_LIMITED = "Too many submissions. Please wait before trying again."
    TIMEOUT = "Request timed out. Please try again."
    NETWORK = "Network error. Please check your connection and try again."


class FormState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class SubmissionResult:
    success: bool
    message: str
    errors: list[str] = field(default_factory=list)
    field_errors: dict[str, str] = field(default_factory=dict)
    status_code: int | None = None
    error_id: str | None = None
    retryable: bool = False


class ContactFormClient:
    def __init__(
        self,
        base_url: str,
        *,
        contact_path: str = "/contact",
        fallback_url: str | None = None,
        service_name: str = SERVICE_NAME,
        timeout: float = 30,
        health_timeout: float = 2,
        captcha_wait: float = 5,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.contact_url = self.base_url + contact_path
        self.fallback_url = fallback_url
        self.service_name = service_name
        self.timeout = timeout
        self.health_timeout = health_timeout
        self.captcha_wait = captcha_wait
        self.http = http or httpx.AsyncClient()

        self.endpoint = fallback_url or self.contact_url
        self.state = FormState.IDLE
        self.captcha_token: str | None = None
        self._captcha_ready = asyncio.Event()
        self._submitting = False

    @property
    def uses_fallback(self) -> bool:
        return self.fallback_url is not None and self.endpoint == self.fallback_url

    async def detect_endpoint(self) -> str:
        """Switch to the relay if its health endpoint answers, otherwise keep the current endpoint."""

        try:
            response = await self.http.get(self.base_url + "/health", timeout=self.health_timeout)
            data = response.json()
        except (httpx.HTTPError, ValueError):
            logger.debug(f"Relay not reachable, using {self.endpoint}")
            return self.endpoint

        if isinstance(data, dict) and self.service_name in str(data.get("service", "")):
            self.endpoint = self.contact_url
            logger.debug(f"Detected relay at {self.endpoint}")
        return self.endpoint

    def on_captcha_ready(self) -> None:
        self._captcha_ready.set()

    def on_captcha_success(self, token: str) -> None:
        self._captcha_ready.set()
        self.captcha_token = token

    def on_captcha_expired(self) -> None:
        self.captcha_token = None

    def check_fields(self, fields: Mapping[str, Any]) -> dict[str, str]:
        """Return per-field messages for inline feedback, using the same rules as the server."""

        return check_fields({**fields, "captcha_token": self.captcha_token or ""})

    async def _wait_for_captcha(self) -> None:
        if self._captcha_ready.is_set():
            return
        try:
            await asyncio.wait_for(self._captcha_ready.wait(), self.captcha_wait)
        except asyncio.TimeoutError:
            logger.debug("reCAPTCHA widget not ready")

    def _payload(self, fields: Mapping[str, Any]) -> dict[str, str]:
        data = {key: str(value) for key, value in fields.items() if value is not None and not isinstance(value, bool)}
        data.update({key: "on" for key, value in fields.items() if value is True})
        token = self.captcha_token or ""
        if self.uses_fallback:
            data["g-recaptcha-response"] = token
        else:
            data["recaptchaResponse"] = token
        return data

    async def submit(self, fields: Mapping[str, Any]) -> SubmissionResult | None:
        """
        Submit the form once.

        Returns None without doing anything while another submission is in flight.
        """

        if self._submitting:
            return None

        self._submitting = True
        self.state = FormState.LOADING
        try:
            result = await self._submit(fields)
        finally:
            self._submitting = False

        self.state = FormState.SUCCESS if result.success else FormState.ERROR
        if result.success:
            self.captcha_token = None
        return result

    async def _submit(self, fields: Mapping[str, Any]) -> SubmissionResult:
        await self._wait_for_captcha()

        if field_errors := self.check_fields(fields):
            only_captcha = list(field_errors) == ["captcha_token"]
            message = Messages.RECAPTCHA_REQUIRED if only_captcha else Messages.VALIDATION_FAILED
            return SubmissionResult(False, message, list(field_errors.values()), field_errors)

        try:
            # httpx applies its timeout per phase, wait_for bounds the whole exchange
            response = await asyncio.wait_for(
                self.http.post(
                    self.endpoint,
                    data=self._payload(fields),
                    headers={"Accept": "application/json", "X-Requested-With": "XMLHttpRequest"},
                    timeout=self.timeout,
                ),
                self.timeout,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError):
            return SubmissionResult(False, Messages.TIMEOUT, retryable=True)
        except httpx.HTTPError:
            return SubmissionResult(False, Messages.NETWORK, retryable=True)

        return self.parse_response(response)

    @staticmethod
    def parse_response(response: httpx.Response) -> SubmissionResult:
        try:
            data = response.json()
        except ValueError:
            data = None

        if not isinstance(data, dict):
            if response.is_success:
                return SubmissionResult(True, Messages.SUCCESS, status_code=response.status_code)
            return SubmissionResult(False, Messages.ERROR, status_code=response.status_code, retryable=True)

        errors = [
            str(error.get("message", "")) if isinstance(error, dict) else str(error)
            for error in data.get("errors") or []
        ]
        success = bool(data.get("success", response.is_success and not errors))
        message = str(data.get("message") or (Messages.SUCCESS if success else Messages.ERROR))
        if response.status_code == 429:
            message = Messages.RATE_LIMITED

        return SubmissionResult(
            success=success,
            message=message,
            errors=errors,
            status_code=response.status_code,
            error_id=data.get("error_id"),
            retryable=response.status_code == 429 or response.status_code >= 500,
        )

    async def aclose(self) -> None:
        await self.http.aclose()
