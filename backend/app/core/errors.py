"""Domain errors raised by services and rendered by the API layer."""

from fastapi import status


class AppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Not allowed"


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Not authenticated"


class WebhookSignatureError(AuthenticationError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid webhook signature"


class InvalidState(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid state"


class UpstreamError(AppError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Upstream service failed"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflicting update"
