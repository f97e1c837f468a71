import asyncio
import json
from dataclasses import dataclass
from typing import Any

import aiohttp

from ..logger import get_logger
from ..settings import ConfigurationError


logger = get_logger(__name__)


class CaptchaTransportError(Exception):
    """The verification service could not be reached or gave no usable answer."""


@dataclass(frozen=True)
class VerificationOutcome:
    passed: bool
    score: float | None = None
    error_codes: frozenset[str] = frozenset()
    challenge_ts: str | None = None
    hostname: str | None = None

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> "VerificationOutcome":
        score = data.get("score")
        return cls(
            passed=data.get("success") is True,
            score=float(score) if isinstance(score, (int, float)) and not isinstance(score, bool) else None,
            error_codes=frozenset(str(code) for code in data.get("error-codes") or []),
            challenge_ts=data.get("challenge_ts"),
            hostname=data.get("hostname"),
        )


class RecaptchaVerifier:
    def __init__(self, secret: str | None, *, verify_url: str, timeout: float = 10) -> None:
        if not secret:
            raise ConfigurationError("reCAPTCHA secret key not configured")

        self._secret = secret
        self._verify_url = verify_url
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def verify(self, token: str, caller_address: str) -> VerificationOutcome:
        """
        Check a client token with the verification service.

        `passed` of the result is the only accept/reject signal. Network failures, timeouts and
        answers without a verdict raise `CaptchaTransportError` instead of counting as a rejection.
        """

        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.post(
                    self._verify_url,
                    data={"secret": self._secret, "response": token, "remoteip": caller_address},
                ) as resp:
                    status = resp.status
                    body = await resp.read()
        except asyncio.TimeoutError as e:
            raise CaptchaTransportError("reCAPTCHA verification timed out") from e
        except aiohttp.ClientError as e:
            raise CaptchaTransportError(f"reCAPTCHA verification failed: {e}") from e

        try:
            data = json.loads(body)
        except ValueError as e:
            raise CaptchaTransportError(f"reCAPTCHA verification returned invalid JSON (HTTP {status})") from e

        if not isinstance(data, dict) or not isinstance(data.get("success"), bool):
            raise CaptchaTransportError(f"reCAPTCHA verification returned no verdict (HTTP {status})")

        outcome = VerificationOutcome.from_response(data)
        logger.debug(f"Recaptcha response: {data}")
        return outcome
