from typing import Any

from fastapi import HTTPException


class APIException(HTTPException):
    status_code: int
    message: str
    description: str

    def __init__(self, **extra: Any) -> None:
        super().__init__(self.status_code, self.message)
        self.extra = extra

    @property
    def content(self) -> dict[str, Any]:
        return {"success": False, "message": self.message, **self.extra}
