"""Hookcatch error taxonomy.

Components raise these exceptions; the request dispatcher converts them
into tagged ``{"success": False, "errorCode": ...}`` responses.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Error codes reported in response metadata."""

    INVALID_ACTION = "INVALID_ACTION"
    MISSING_ENDPOINT_ID = "MISSING_ENDPOINT_ID"
    INVALID_ENDPOINT_ID = "INVALID_ENDPOINT_ID"
    DUPLICATE_ENDPOINT = "DUPLICATE_ENDPOINT"
    ENDPOINT_NOT_FOUND = "ENDPOINT_NOT_FOUND"
    MISSING_PAYLOAD = "MISSING_PAYLOAD"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    INVALID_PARAMETER = "INVALID_PARAMETER"
    REGISTRY_FULL = "REGISTRY_FULL"


class HookcatchError(Exception):
    """Base error for all hookcatch exceptions."""

    code: ErrorCode = ErrorCode.INVALID_ACTION

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "errorCode": str(self.code),
            "message": self.message,
            "details": self.details,
        }


class InvalidActionError(HookcatchError):
    """Unrecognized or missing action tag."""

    code = ErrorCode.INVALID_ACTION


class MissingEndpointIdError(HookcatchError):
    """An operation that needs an endpoint id was called without one."""

    code = ErrorCode.MISSING_ENDPOINT_ID


class InvalidEndpointIdError(HookcatchError):
    code = ErrorCode.INVALID_ENDPOINT_ID

    def __init__(self, endpoint_id: str) -> None:
        super().__init__(
            f'Invalid endpoint ID "{endpoint_id}". '
            "Only alphanumeric characters and hyphens are allowed.",
            {"endpointId": endpoint_id},
        )
        self.endpoint_id = endpoint_id


class DuplicateEndpointError(HookcatchError):
    code = ErrorCode.DUPLICATE_ENDPOINT

    def __init__(self, endpoint_id: str) -> None:
        super().__init__(
            f'Endpoint "{endpoint_id}" already exists. '
            "Use a different ID or unregister the existing one first.",
            {"endpointId": endpoint_id},
        )
        self.endpoint_id = endpoint_id


class EndpointNotFoundError(HookcatchError):
    code = ErrorCode.ENDPOINT_NOT_FOUND

    def __init__(self, endpoint_id: str) -> None:
        super().__init__(f'Endpoint "{endpoint_id}" not found.', {"endpointId": endpoint_id})
        self.endpoint_id = endpoint_id


class MissingPayloadError(HookcatchError):
    """``receive`` was called without a body."""

    code = ErrorCode.MISSING_PAYLOAD


class InvalidSignatureError(HookcatchError):
    """Secret configured but the signature header is missing or wrong."""

    code = ErrorCode.INVALID_SIGNATURE

    def __init__(self, message: str, status: str | None = None) -> None:
        super().__init__(message, {"status": status} if status else None)
        self.status = status


class InvalidParameterError(HookcatchError):
    """A numeric or typed request field failed validation."""

    code = ErrorCode.INVALID_PARAMETER

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, {"field": field} if field else None)
        self.field = field


class RegistryFullError(HookcatchError):
    code = ErrorCode.REGISTRY_FULL

    def __init__(self, limit: int) -> None:
        super().__init__(
            f"Endpoint limit reached ({limit}). Unregister an endpoint first.",
            {"maxEndpoints": limit},
        )
        self.limit = limit
