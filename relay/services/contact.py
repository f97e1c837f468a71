from dataclasses import dataclass
from typing import Protocol

from fastapi import Request

from .submission_log import SubmissionLog
from ..settings import Settings
from ..utils.rate_limit import RateLimiter
from ..utils.recaptcha import VerificationOutcome
from ..validation import Submission


class CaptchaVerifier(Protocol):
    async def verify(self, token: str, caller_address: str) -> VerificationOutcome:
        ...


class Dispatcher(Protocol):
    async def dispatch(self, submission: Submission, caller_address: str, verification: VerificationOutcome) -> None:
        ...


@dataclass
class ContactServices:
    settings: Settings
    verifier: CaptchaVerifier
    dispatcher: Dispatcher
    rate_limiter: RateLimiter
    submission_log: SubmissionLog


def get_services(request: Request) -> ContactServices:
    services: ContactServices = request.app.state.services
    return services
