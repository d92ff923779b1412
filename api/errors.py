"""
API error types and their JSON rendering.
"""

from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse


class APIError(Exception):
    """An error returned to the client as ``{"error": ..., "message": ...}``."""

    def __init__(self, status_code: int, error: str, message: Optional[str] = None):
        super().__init__(message or error)
        self.status_code = status_code
        self.error = error
        self.message = message


def bad_request(error: str) -> APIError:
    return APIError(400, error)


def provider_failure(error: str, message: str) -> APIError:
    return APIError(500, error, message)


async def api_error_handler(request: Request, exc: APIError):
    content = {"error": exc.error}
    if exc.message is not None:
        content["message"] = exc.message
    return JSONResponse(status_code=exc.status_code, content=content)
