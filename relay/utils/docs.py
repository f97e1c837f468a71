from typing import Any, Type

from ..exceptions.api_exception import APIException


def responses(default: Any, *args: Type[APIException]) -> dict[int | str, dict[str, Any]]:
    """Build the OpenAPI `responses` of an endpoint from its default model and the errors it may raise."""

    out: dict[int | str, dict[str, Any]] = {}
    for exc in args:
        entry = out.setdefault(
            exc.status_code, {"description": "", "content": {"application/json": {"examples": {}}}}
        )
        entry["description"] = "\n\n".join(filter(None, [entry["description"], exc.description]))
        entry["content"]["application/json"]["examples"][exc.__name__] = {
            "summary": exc.message,
            "value": {"success": False, "message": exc.message},
        }
    return {200: {"model": default}} | out
