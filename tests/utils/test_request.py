from typing import Any

import pytest
from fastapi import Request

from relay.exceptions.contact import RequestTooLargeError
from relay.utils.request import read_fields


MULTIPART_BODY = (
    b"--xyz\r\n"
    b'Content-Disposition: form-data; name="name"\r\n\r\n'
    b"Al\r\n"
    b"--xyz\r\n"
    b'Content-Disposition: form-data; name="attachment"; filename="a.txt"\r\n'
    b"Content-Type: text/plain\r\n\r\n"
    b"ignored\r\n"
    b"--xyz--\r\n"
)


def make_request(content_type: str, *chunks: bytes) -> Request:
    messages: list[dict[str, Any]] = [
        {"type": "http.request", "body": chunk, "more_body": i < len(chunks) - 1} for i, chunk in enumerate(chunks)
    ]

    async def receive() -> dict[str, Any]:
        return messages.pop(0) if messages else {"type": "http.disconnect"}

    scope = {
        "type": "http",
        "method": "POST",
        "path": "/contact",
        "query_string": b"",
        "headers": [(b"content-type", content_type.encode())],
        "client": ("203.0.113.7", 1234),
    }
    return Request(scope, receive)


async def test__read_fields_urlencoded() -> None:
    request = make_request("application/x-www-form-urlencoded", b"name=Al&email=a%40b.co&message=hello+world&agree=")

    assert await read_fields(request, max_size=1024) == {
        "name": "Al",
        "email": "a@b.co",
        "message": "hello world",
        "agree": "",
    }


async def test__read_fields_urlencoded_invalid_utf8() -> None:
    request = make_request("application/x-www-form-urlencoded", b"name=%FFAl")

    assert await read_fields(request, max_size=1024) == {"name": "\ufffdAl"}


async def test__read_fields_multipart() -> None:
    request = make_request("multipart/form-data; boundary=xyz", MULTIPART_BODY[:40], MULTIPART_BODY[40:])

    assert await read_fields(request, max_size=1024) == {"name": "Al"}


async def test__read_fields_multipart_without_boundary() -> None:
    request = make_request("multipart/form-data", MULTIPART_BODY)

    assert await read_fields(request, max_size=1024) == {}


async def test__read_fields_chunked_too_large() -> None:
    request = make_request("application/x-www-form-urlencoded", b"name=" + b"x" * 600, b"x" * 600)

    with pytest.raises(RequestTooLargeError):
        await read_fields(request, max_size=1024)
