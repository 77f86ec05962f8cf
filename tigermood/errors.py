from typing import Optional

import httpx


class ApiError(Exception):
    """A response the backend answered, but not with a usable payload."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 response: Optional[httpx.Response] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response = response

    def __str__(self):
        if self.status_code is None:
            return self.message
        return f"{self.status_code}: {self.message}"


class AuthenticationError(ApiError):
    """Session is gone; the caller should send the user back to login."""


class ValidationError(ApiError):
    pass


class ServerError(ApiError):
    pass


def _server_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        # envelope first, then FastAPI's default error shape
        for key in ("message", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
            if value:
                return str(value)
    return response.reason_phrase


def error_from_response(response: httpx.Response) -> ApiError:
    message = _server_message(response)
    status = response.status_code
    if status == 401:
        return AuthenticationError(message, status, response)
    if status >= 500:
        return ServerError(message, status, response)
    if status >= 400:
        return ValidationError(message, status, response)
    return ApiError(message, status, response)
