import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from relay.settings import ConfigurationError
from relay.utils.recaptcha import CaptchaTransportError, RecaptchaVerifier, VerificationOutcome


Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


@asynccontextmanager
async def serve(handler: Handler) -> AsyncIterator[str]:
    app = web.Application()
    app.router.add_post("/siteverify", handler)
    async with TestServer(app) as server:
        yield str(server.make_url("/siteverify"))


def json_handler(data: Any, status: int = 200, received: list[dict[str, str]] | None = None) -> Handler:
    async def handler(request: web.Request) -> web.StreamResponse:
        if received is not None:
            received.append(dict(await request.post()))  # type: ignore[arg-type]
        return web.json_response(data, status=status)

    return handler


def bytes_handler(body: bytes) -> Handler:
    async def handler(_: web.Request) -> web.StreamResponse:
        return web.Response(body=body, content_type="application/json")

    return handler


def text_handler(text: str, status: int = 200) -> Handler:
    async def handler(_: web.Request) -> web.StreamResponse:
        return web.Response(text=text, status=status)

    return handler


async def test__verify_passed() -> None:
    received: list[dict[str, str]] = []
    data = {"success": True, "score": 0.7, "challenge_ts": "2024-01-01T00:00:00Z", "hostname": "example.com"}

    async with serve(json_handler(data, received=received)) as url:
        outcome = await RecaptchaVerifier("My secret", verify_url=url).verify("the token", "203.0.113.7")

    assert outcome == VerificationOutcome(
        passed=True, score=0.7, challenge_ts="2024-01-01T00:00:00Z", hostname="example.com"
    )
    assert received == [{"secret": "My secret", "response": "the token", "remoteip": "203.0.113.7"}]


async def test__verify_rejected() -> None:
    data = {"success": False, "error-codes": ["invalid-input-response", "timeout-or-duplicate"]}

    async with serve(json_handler(data)) as url:
        outcome = await RecaptchaVerifier("My secret", verify_url=url).verify("the token", "203.0.113.7")

    assert outcome.passed is False
    assert outcome.score is None
    assert outcome.error_codes == {"invalid-input-response", "timeout-or-duplicate"}


async def test__verify_rejected_with_error_status() -> None:
    async with serve(json_handler({"success": False, "error-codes": ["bad-request"]}, status=400)) as url:
        outcome = await RecaptchaVerifier("My secret", verify_url=url).verify("the token", "203.0.113.7")

    assert outcome.passed is False


@pytest.mark.parametrize(
    "handler",
    [
        text_handler("<html>not json</html>"),
        text_handler("Internal Server Error", status=500),
        text_handler(""),
        bytes_handler(b'{"success": true, "hostname": "\xff\xfe"}'),
        json_handler(["success", True]),
        json_handler({"score": 0.9}),
        json_handler({"success": "true"}),
        json_handler({"error": "unavailable"}, status=503),
    ],
)
async def test__verify_unusable_response(handler: Handler) -> None:
    async with serve(handler) as url:
        with pytest.raises(CaptchaTransportError):
            await RecaptchaVerifier("My secret", verify_url=url).verify("the token", "203.0.113.7")


async def test__verify_timeout() -> None:
    async def slow(_: web.Request) -> web.StreamResponse:
        await asyncio.sleep(1)
        return web.json_response({"success": True})

    async with serve(slow) as url:
        with pytest.raises(CaptchaTransportError, match="timed out"):
            await RecaptchaVerifier("My secret", verify_url=url, timeout=0.1).verify("the token", "203.0.113.7")


async def test__verify_connection_error() -> None:
    async with serve(json_handler({"success": True})) as url:
        pass

    with pytest.raises(CaptchaTransportError):
        await RecaptchaVerifier("My secret", verify_url=url, timeout=2).verify("the token", "203.0.113.7")


@pytest.mark.parametrize("secret", [None, ""])
def test__verifier_requires_secret(secret: str | None) -> None:
    with pytest.raises(ConfigurationError):
        RecaptchaVerifier(secret, verify_url="https://www.google.com/recaptcha/api/siteverify")


@pytest.mark.parametrize(
    "data,expected",
    [
        ({"success": True}, VerificationOutcome(passed=True)),
        ({"success": True, "score": 1}, VerificationOutcome(passed=True, score=1.0)),
        ({"success": True, "score": True}, VerificationOutcome(passed=True)),
        ({"success": True, "score": "0.5"}, VerificationOutcome(passed=True)),
        ({"success": False, "error-codes": None}, VerificationOutcome(passed=False)),
        ({"success": False, "error-codes": ["a", "a"]}, VerificationOutcome(passed=False, error_codes=frozenset("a"))),
    ],
)
def test__outcome_from_response(data: dict[str, Any], expected: VerificationOutcome) -> None:
    assert VerificationOutcome.from_response(data) == expected
