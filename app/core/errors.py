"""
Domain error taxonomy.

Each error carries the HTTP status the API layer answers with, so routes can
let them propagate and a single exception handler renders the response.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Any, Optional


class FeenError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR
    error_code: str = "internal_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error_code, "detail": self.message}


class AuthorizationRequiredError(FeenError):
    """No stored token; the member has to start the OAuth flow."""

    status_code = HTTPStatus.UNAUTHORIZED
    error_code = "authorization_required"

    def __init__(self, member_id: int, service_type: Any) -> None:
        super().__init__(
            f"Member {member_id} has not authorized {getattr(service_type, 'value', service_type)}."
        )
        self.member_id = member_id
        self.service_type = service_type


class ReauthorizationRequiredError(FeenError):
    """The stored refresh token was rejected; the member has to re-consent."""

    status_code = HTTPStatus.UNAUTHORIZED
    error_code = "reauthorization_required"

    def __init__(self, member_id: int, service_type: Any, reason: str | None = None) -> None:
        message = (
            f"Authorization for member {member_id} on "
            f"{getattr(service_type, 'value', service_type)} must be renewed."
        )
        if reason:
            message = f"{message} Reason: {reason}"
        super().__init__(message)
        self.member_id = member_id
        self.service_type = service_type
        self.reason = reason


class ExternalServiceError(FeenError):
    """A provider call failed."""

    status_code = HTTPStatus.BAD_GATEWAY
    error_code = "external_service_error"

    def __init__(
        self,
        message: str,
        *,
        provider: str = "google",
        provider_status: Optional[int] = None,
        provider_code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.provider_status = provider_status
        self.provider_code = provider_code

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload.update(
            provider=self.provider,
            provider_status=self.provider_status,
            provider_code=self.provider_code,
        )
        return payload


class PartialFailureError(FeenError):
    """A batch operation succeeded for only some of its items."""

    status_code = HTTPStatus.MULTI_STATUS
    error_code = "partial_failure"

    def __init__(self, message: str, *, succeeded: list[Any], failed: list[Any]) -> None:
        super().__init__(message)
        self.succeeded = succeeded
        self.failed = failed

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload.update(
            succeeded=[_dump(item) for item in self.succeeded],
            failed=[_dump(item) for item in self.failed],
        )
        return payload


class CalendarNotFoundError(FeenError):
    status_code = HTTPStatus.NOT_FOUND
    error_code = "calendar_not_found"

    def __init__(self, calendar_id: int) -> None:
        super().__init__(f"Calendar {calendar_id} does not exist.")
        self.calendar_id = calendar_id


class CalendarAlreadyExistsError(FeenError):
    status_code = HTTPStatus.CONFLICT
    error_code = "calendar_already_exists"

    def __init__(self, code: str) -> None:
        super().__init__(f"A calendar with code {code} already exists.")
        self.code = code


class CalendarAlreadyActiveError(FeenError):
    status_code = HTTPStatus.CONFLICT
    error_code = "calendar_already_active"

    def __init__(self, calendar_id: int) -> None:
        super().__init__(f"Calendar {calendar_id} is already active.")
        self.calendar_id = calendar_id


class NotificationNotFoundError(FeenError):
    status_code = HTTPStatus.NOT_FOUND
    error_code = "notification_not_found"

    def __init__(self, notification_id: int) -> None:
        super().__init__(f"Notification {notification_id} does not exist.")
        self.notification_id = notification_id


def _dump(item: Any) -> Any:
    if hasattr(item, "model_dump"):
        return item.model_dump(mode="json")
    return item


__all__ = [
    "AuthorizationRequiredError",
    "CalendarAlreadyActiveError",
    "CalendarAlreadyExistsError",
    "CalendarNotFoundError",
    "ExternalServiceError",
    "FeenError",
    "NotificationNotFoundError",
    "PartialFailureError",
    "ReauthorizationRequiredError",
]
