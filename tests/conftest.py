from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from relay.main import create_app
from relay.services.submission_log import SubmissionLog
from relay.settings import Settings
from relay.utils.recaptcha import VerificationOutcome
from relay.validation import Submission


class FakeVerifier:
    def __init__(self, outcome: VerificationOutcome | None = None, error: Exception | None = None) -> None:
        self.outcome = outcome or VerificationOutcome(passed=True, score=0.9)
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def verify(self, token: str, caller_address: str) -> VerificationOutcome:
        self.calls.append((token, caller_address))
        if self.error:
            raise self.error
        return self.outcome


class FakeDispatcher:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[tuple[Submission, str, VerificationOutcome]] = []

    async def dispatch(self, submission: Submission, caller_address: str, verification: VerificationOutcome) -> None:
        self.calls.append((submission, caller_address, verification))
        if self.error:
            raise self.error


VALID_FORM = {
    "name": "Al",
    "email": "a@b.co",
    "message": "1234567890",
    "agree": "on",
    "recaptchaResponse": "token",
}


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        recaptcha_secret="My recaptcha secret",
        smtp_host="smtp.example.com",
        smtp_from="noreply@example.com",
        contact_email="info@example.com",
        log_dir=tmp_path / "logs",
    )


@pytest.fixture
def verifier() -> FakeVerifier:
    return FakeVerifier()


@pytest.fixture
def dispatcher() -> FakeDispatcher:
    return FakeDispatcher()


@pytest.fixture
def app(settings: Settings, verifier: FakeVerifier, dispatcher: FakeDispatcher) -> FastAPI:
    return create_app(settings, verifier=verifier, dispatcher=dispatcher)


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def submission_log(app: FastAPI) -> SubmissionLog:
    log: SubmissionLog = app.state.services.submission_log
    return log


def read_log(path: Path) -> list[str]:
    return path.read_text(encoding="utf-8").splitlines() if path.exists() else []
