import json
from collections.abc import AsyncIterator
from typing import Any
from urllib.parse import parse_qsl

from fastapi import Request
from starlette.datastructures import FormData
from starlette.formparsers import MultiPartException, MultiPartParser

from ..exceptions.contact import RequestTooLargeError


def get_caller_address(request: Request, *, trust_forwarded: bool) -> str:
    if trust_forwarded:
        if forwarded := request.headers.get("X-Forwarded-For"):
            return forwarded.split(",")[0].strip()
        if real_ip := request.headers.get("X-Real-IP"):
            return real_ip.strip()
    return request.client.host if request.client else "127.0.0.1"


async def _parse_multipart(request: Request, body: bytes) -> FormData:
    async def stream() -> AsyncIterator[bytes]:
        yield body

    try:
        return await MultiPartParser(request.headers, stream()).parse()
    except (MultiPartException, KeyError):
        # malformed parts or no boundary in the content type
        return FormData()


async def read_fields(request: Request, *, max_size: int) -> dict[str, Any]:
    """Read a form-encoded, multipart or JSON request body into a flat dict of fields."""

    content_length = request.headers.get("Content-Length")
    if content_length and content_length.isdigit() and int(content_length) > max_size:
        raise RequestTooLargeError

    body = b""
    async for chunk in request.stream():
        body += chunk
        if len(body) > max_size:
            raise RequestTooLargeError

    content_type = request.headers.get("Content-Type", "").split(";")[0].strip().lower()
    if content_type == "application/json":
        try:
            data = json.loads(body)
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    if content_type == "application/x-www-form-urlencoded":
        return dict(parse_qsl(body.decode("utf-8", errors="replace"), keep_blank_values=True))

    if content_type == "multipart/form-data":
        form = await _parse_multipart(request, body)
        try:
            return {key: value for key, value in form.items() if isinstance(value, str)}
        finally:
            await form.close()

    return {}
