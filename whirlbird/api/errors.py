"""Error taxonomy for the score/publish API.

Each kind maps to one HTTP status; messages are safe to show to clients.
"""

from __future__ import annotations

from whirlbird.api.schemas import ErrorResponse


class ApiError(Exception):
    status_code = 500
    default_message = "internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_envelope(self) -> dict[str, str]:
        return ErrorResponse(message=self.message).model_dump()


class ValidationError(ApiError):
    status_code = 400
    default_message = "invalid request"


class AuthError(ApiError):
    status_code = 401
    default_message = "login required"


class NotFound(ApiError):
    status_code = 404
    default_message = "not found"


class PayloadTooLarge(ApiError):
    status_code = 413
    default_message = "request body too large"


class UnsupportedMediaType(ApiError):
    status_code = 415
    default_message = "Content-Type must be application/json"


class RateLimitError(ApiError):
    status_code = 429
    default_message = "slow down - too many requests"


class InternalError(ApiError):
    status_code = 500
