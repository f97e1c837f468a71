from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from uuid import uuid4

import sentry_sdk
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sentry_sdk.integrations.logging import LoggingIntegration
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .endpoints import ROUTERS
from .exceptions.api_exception import APIException
from .logger import get_logger
from .services.contact import CaptchaVerifier, ContactServices, Dispatcher
from .services.notification import NotificationDispatcher
from .services.submission_log import Outcome, SubmissionLog
from .settings import Settings, settings as default_settings
from .utils.email import SMTPConfig
from .utils.rate_limit import MemoryRateLimiter, RateLimiter, RedisRateLimiter
from .utils.recaptcha import RecaptchaVerifier
from .utils.request import get_caller_address


logger = get_logger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}

STATUS_MESSAGES = {404: "API endpoint not found", 405: "Method not allowed"}


def setup_sentry(settings: Settings) -> None:
    if not settings.sentry_dsn:
        return

    logger.debug("initializing sentry")
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.sentry_environment,
        release=f"contact-relay@{__version__}",
        integrations=[LoggingIntegration()],
        send_default_pii=False,
    )


def build_services(
    settings: Settings,
    *,
    verifier: CaptchaVerifier | None = None,
    dispatcher: Dispatcher | None = None,
    rate_limiter: RateLimiter | None = None,
    submission_log: SubmissionLog | None = None,
) -> ContactServices:
    """Create the collaborators of the contact endpoint, failing early if the configuration is incomplete."""

    if verifier is None or dispatcher is None:
        settings.require_contact_config()

    if verifier is None:
        verifier = RecaptchaVerifier(
            settings.recaptcha_secret, verify_url=settings.recaptcha_verify_url, timeout=settings.recaptcha_timeout
        )
    if dispatcher is None:
        dispatcher = NotificationDispatcher(
            recipient=settings.contact_email,
            sender=settings.smtp_from,
            subject=settings.contact_subject,
            service_name=settings.service_name,
            smtp=SMTPConfig(
                host=settings.smtp_host,
                port=settings.smtp_port,
                user=settings.smtp_user,
                password=settings.smtp_password,
                use_tls=settings.smtp_tls,
                start_tls=settings.smtp_starttls,
                timeout=settings.smtp_timeout,
            ),
        )
    if rate_limiter is None:
        if settings.redis_url:
            rate_limiter = RedisRateLimiter(
                Redis.from_url(settings.redis_url), settings.rate_limit_max_requests, settings.rate_limit_window
            )
        else:
            rate_limiter = MemoryRateLimiter(settings.rate_limit_max_requests, settings.rate_limit_window)
    if submission_log is None:
        submission_log = SubmissionLog(settings.log_dir)

    return ContactServices(
        settings=settings,
        verifier=verifier,
        dispatcher=dispatcher,
        rate_limiter=rate_limiter,
        submission_log=submission_log,
    )


def create_app(
    settings: Settings = default_settings,
    *,
    verifier: CaptchaVerifier | None = None,
    dispatcher: Dispatcher | None = None,
    rate_limiter: RateLimiter | None = None,
    submission_log: SubmissionLog | None = None,
) -> FastAPI:
    services = build_services(
        settings, verifier=verifier, dispatcher=dispatcher, rate_limiter=rate_limiter, submission_log=submission_log
    )
    setup_sentry(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        logger.info(f"{settings.service_name} v{__version__} ready")
        yield
        services.submission_log.close()
        if isinstance(services.rate_limiter, RedisRateLimiter):
            await services.rate_limiter.redis.aclose()

    app = FastAPI(
        title=settings.service_name,
        description="Relay contact form submissions to the operator's inbox.",
        version=__version__,
        root_path=settings.root_path,
        debug=settings.debug,
        lifespan=lifespan,
        openapi_tags=[{"name": name, "description": doc} for name, (_, doc) in ROUTERS.items()],
    )
    app.state.services = services

    if settings.cors_origin_list:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origin_list,
            allow_methods=["GET", "POST"],
            allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
            allow_credentials=False,
        )

    @app.middleware("http")
    async def security_headers(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        response = await call_next(request)
        for key, value in SECURITY_HEADERS.items():
            response.headers.setdefault(key, value)
        return response

    @app.exception_handler(APIException)
    async def api_exception_handler(_: Request, exc: APIException) -> Response:
        return JSONResponse(exc.content, exc.status_code, exc.headers)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_: Request, exc: StarletteHTTPException) -> Response:
        message = STATUS_MESSAGES.get(exc.status_code, str(exc.detail))
        return JSONResponse({"success": False, "message": message}, exc.status_code, exc.headers)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> Response:
        error_id = uuid4().hex
        logger.exception(f"[{error_id}] Unhandled error on {request.method} {request.url.path}", exc_info=exc)
        services.submission_log.record(
            Outcome.FAILURE,
            f"Error {error_id}: Unhandled error on {request.method} {request.url.path}: {exc!r}",
            get_caller_address(request, trust_forwarded=settings.trust_forwarded_headers),
        )
        # raised errors bypass the http middleware, so the headers are set here
        return JSONResponse(
            {"success": False, "message": "Internal server error", "error_id": error_id}, 500, SECURITY_HEADERS
        )

    for router, _ in ROUTERS.values():
        app.include_router(router)

    return app
