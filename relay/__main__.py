import uvicorn

from .settings import settings


def main() -> None:
    uvicorn.run(
        "relay.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
        forwarded_allow_ips="*" if settings.trust_forwarded_headers else None,
    )


if __name__ == "__main__":
    main()
