"""Endpoints for the contact form"""

from typing import Any
from uuid import uuid4

from fastapi import APIRouter, Depends, Request

from relay.exceptions.contact import (
    RateLimitedError,
    RecaptchaRejectedError,
    RequestTooLargeError,
    SubmissionFailedError,
    ValidationFailedError,
)
from relay.logger import get_logger
from relay.rules import RULES
from relay.schemas.contact import ContactForm, ContactResponse, RulesResponse
from relay.services.contact import ContactServices, get_services
from relay.services.notification import DispatchError
from relay.services.submission_log import Outcome
from relay.utils.docs import responses
from relay.utils.recaptcha import CaptchaTransportError
from relay.utils.request import get_caller_address, read_fields
from relay.utils.utc import isoformat
from relay.validation import Invalid, normalize, validate


SUCCESS_MESSAGE = "Thank you! Your message has been sent successfully. We'll get back to you soon."

REQUEST_BODY_DOCS = {
    "requestBody": {
        "required": True,
        "content": {
            content_type: {"schema": ContactForm.model_json_schema()}
            for content_type in ("application/json", "application/x-www-form-urlencoded")
        },
    }
}

router = APIRouter(tags=["contact"])
logger = get_logger(__name__)


def _system_fault(services: ContactServices, what: str, error: Exception, caller_address: str) -> SubmissionFailedError:
    error_id = uuid4().hex
    logger.error(f"[{error_id}] {what}: {error}", exc_info=error)
    services.submission_log.record(Outcome.FAILURE, f"Error {error_id}: {what}: {error}", caller_address)
    return SubmissionFailedError(error_id)


@router.post(
    "/contact",
    responses=responses(
        ContactResponse,
        ValidationFailedError,
        RecaptchaRejectedError,
        RequestTooLargeError,
        RateLimitedError,
        SubmissionFailedError,
    ),
    openapi_extra=REQUEST_BODY_DOCS,
)
@router.post("/process-contact", include_in_schema=False)
async def send_message(
    request: Request,
    services: ContactServices = Depends(get_services),
) -> Any:
    """
    Send a contact form message to the operator.

    The body may be JSON or form data. Submissions are checked in order: rate limit, field
    validation, reCAPTCHA verification. Only then is the notification email sent.
    """

    settings = services.settings
    caller_address = get_caller_address(request, trust_forwarded=settings.trust_forwarded_headers)

    if (retry_after := await services.rate_limiter.hit(caller_address)) is not None:
        services.submission_log.record(Outcome.FAILURE, "Rate limit exceeded", caller_address)
        raise RateLimitedError(retry_after)

    try:
        fields = normalize(await read_fields(request, max_size=settings.max_body_size))
    except RequestTooLargeError:
        services.submission_log.record(Outcome.FAILURE, "Request body too large", caller_address)
        raise

    result = validate(fields)
    if isinstance(result, Invalid):
        services.submission_log.record(
            Outcome.FAILURE, f"Validation failed: {'; '.join(result.errors)}", caller_address
        )
        raise ValidationFailedError(list(result.errors))
    submission = result.submission

    try:
        verification = await services.verifier.verify(submission.captcha_token, caller_address)
    except CaptchaTransportError as e:
        raise _system_fault(services, "reCAPTCHA verification error", e, caller_address)

    if not verification.passed:
        services.submission_log.record(
            Outcome.FAILURE,
            f"reCAPTCHA verification failed for {submission.email}: {sorted(verification.error_codes)}",
            caller_address,
        )
        raise RecaptchaRejectedError

    try:
        await services.dispatcher.dispatch(submission, caller_address, verification)
    except DispatchError as e:
        raise _system_fault(services, f"Notification dispatch error ({e.kind})", e, caller_address)

    services.submission_log.record(
        Outcome.SUCCESS,
        f"Contact form submission from {submission.email} (score: {verification.score}) - SUCCESS",
        caller_address,
    )
    return {"success": True, "message": SUCCESS_MESSAGE, "timestamp": isoformat()}


@router.get("/contact/rules", responses=responses(RulesResponse))
async def get_rules() -> Any:
    """Return the field rules of the contact form, so that clients can check their input before sending it."""

    return {"rules": [rule.serialize for rule in RULES]}
