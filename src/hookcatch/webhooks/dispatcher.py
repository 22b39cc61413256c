"""Request dispatcher for the webhook receiver.

Routes a tagged action request to the registry and normalizes every
outcome into a ``Response(message, metadata)`` pair. Components below the
dispatcher raise HookcatchError subclasses; they are converted here so that
no exception escapes ``dispatch``.

Request shape (camelCase keys):
    {"action": "receive", "endpointId": "hook-1", "payload": {...},
     "headers": {"x-signature-256": "sha256=..."}}

Response shape:
    {"message": "...", "metadata": {"success": true, ...}}
    {"message": "...", "metadata": {"success": false, "errorCode": "..."}}
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, TypeVar

import structlog
from pydantic import BaseModel, ConfigDict, Field, SecretStr, StrictInt, ValidationError

from hookcatch.errors import (
    ErrorCode,
    HookcatchError,
    InvalidActionError,
    InvalidEndpointIdError,
    InvalidParameterError,
    MissingEndpointIdError,
    MissingPayloadError,
)
from hookcatch.observability.metrics import DISPATCH_REQUESTS
from hookcatch.webhooks.registry import EndpointRegistry

logger = structlog.get_logger()


class Action(StrEnum):
    """Receiver actions."""

    REGISTER = "register"
    UNREGISTER = "unregister"
    LIST = "list"
    INSPECT = "inspect"
    RECEIVE = "receive"
    CLEAR = "clear"


@dataclass
class Response:
    """Uniform dispatcher result."""

    message: str
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return bool(self.metadata.get("success"))

    @property
    def error_code(self) -> ErrorCode | None:
        code = self.metadata.get("errorCode")
        return ErrorCode(code) if code else None

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "metadata": self.metadata}

    @classmethod
    def ok(cls, message: str, **metadata: Any) -> Response:
        return cls(message, {"success": True, **metadata})

    @classmethod
    def failure(cls, error: HookcatchError) -> Response:
        return cls(error.message, {"success": False, "errorCode": str(error.code)})


class _Params(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    endpoint_id: str | None = Field(default=None, alias="endpointId")


class RegisterParams(_Params):
    name: str | None = None
    secret: SecretStr | None = None
    max_payloads: StrictInt | None = Field(default=None, gt=0, alias="maxPayloads")


class InspectParams(_Params):
    limit: StrictInt | None = Field(default=None, ge=0)
    offset: StrictInt = Field(default=0, ge=0)


class ReceiveParams(_Params):
    payload: Any = None
    headers: dict[str, Any] | None = None


P = TypeVar("P", bound=_Params)


def _parse(model: type[P], request: Mapping[str, Any]) -> P:
    """Validate request fields, mapping pydantic errors onto the taxonomy.

    Error text is built from the field name and reason only; input values
    are never echoed, so a malformed secret cannot leak into a response.
    """
    try:
        return model.model_validate(dict(request))
    except ValidationError as e:
        error = e.errors(include_input=False, include_url=False)[0]
        loc = str(error["loc"][0]) if error["loc"] else "request"
        if loc == "endpointId":
            raise InvalidEndpointIdError("<non-string>") from None
        raise InvalidParameterError(f"Invalid {loc}: {error['msg']}.", field=loc) from None


def _require_endpoint_id(params: _Params, verb: str) -> str:
    if not params.endpoint_id:
        raise MissingEndpointIdError(f"An endpoint ID is required to {verb}.")
    return params.endpoint_id


class RequestDispatcher:
    """Translates action requests into registry operations.

    The registry is injected so each dispatcher (and each test) works on
    its own isolated state.
    """

    def __init__(self, registry: EndpointRegistry) -> None:
        self.registry = registry
        self._handlers: dict[Action, Callable[[Mapping[str, Any]], Response]] = {
            Action.REGISTER: self._register,
            Action.UNREGISTER: self._unregister,
            Action.LIST: self._list,
            Action.INSPECT: self._inspect,
            Action.RECEIVE: self._receive,
            Action.CLEAR: self._clear,
        }
        missing = set(Action) - self._handlers.keys()
        if missing:
            raise RuntimeError(f"No handler for actions: {sorted(missing)}")

    def dispatch(self, request: Mapping[str, Any]) -> Response:
        """Run one action request. Never raises for malformed input."""
        raw_action = request.get("action") if isinstance(request, Mapping) else None
        try:
            action = Action(raw_action)
        except (ValueError, TypeError):
            response = Response.failure(
                InvalidActionError(
                    f'Invalid action: "{raw_action}". '
                    f"Supported actions: {', '.join(a.value for a in Action)}."
                )
            )
            self._record("invalid", response)
            return response

        try:
            response = self._handlers[action](request)
        except HookcatchError as e:
            response = Response.failure(e)

        self._record(action.value, response)
        return response

    def __call__(self, request: Mapping[str, Any]) -> dict[str, Any]:
        return self.dispatch(request).to_dict()

    def _record(self, action: str, response: Response) -> None:
        if not response.success:
            logger.info(
                "Receiver action failed",
                action=action,
                error_code=response.metadata.get("errorCode"),
            )
        if self.registry.config.metrics_enabled:
            outcome = "success" if response.success else "error"
            DISPATCH_REQUESTS.labels(action=action, outcome=outcome).inc()

    def _register(self, request: Mapping[str, Any]) -> Response:
        params = _parse(RegisterParams, request)
        endpoint = self.registry.register(
            endpoint_id=params.endpoint_id,
            name=params.name,
            secret=params.secret,
            max_payloads=params.max_payloads,
        )
        suffix = " HMAC-SHA256 signature validation is enabled." if endpoint.has_secret else ""
        return Response.ok(
            f'Webhook endpoint "{endpoint.name}" registered successfully '
            f'with ID "{endpoint.id}".{suffix}',
            endpointId=endpoint.id,
            name=endpoint.name,
            hasSecret=endpoint.has_secret,
            createdAt=endpoint.created_at.isoformat(),
            maxPayloads=endpoint.max_payloads,
        )

    def _unregister(self, request: Mapping[str, Any]) -> Response:
        endpoint_id = _require_endpoint_id(_parse(_Params, request), "unregister")
        endpoint, removed = self.registry.unregister(endpoint_id)
        return Response.ok(
            f'Endpoint "{endpoint.name}" ({endpoint.id}) unregistered. '
            f"{removed} stored payload(s) removed.",
            endpointId=endpoint.id,
            name=endpoint.name,
            payloadsRemoved=removed,
        )

    def _list(self, request: Mapping[str, Any]) -> Response:
        summaries = [summary.to_dict() for summary in self.registry.list_endpoints()]
        if not summaries:
            return Response.ok("No webhook endpoints registered.", totalEndpoints=0, endpoints=[])

        lines = [
            f"  - {ep['name']} ({ep['id']}): {ep['payloadCount']} payload(s), "
            f"created {ep['createdAt']}{' [secured]' if ep['hasSecret'] else ''}"
            for ep in summaries
        ]
        return Response.ok(
            f"Registered webhook endpoints ({len(summaries)}):\n\n" + "\n".join(lines),
            totalEndpoints=len(summaries),
            endpoints=summaries,
        )

    def _inspect(self, request: Mapping[str, Any]) -> Response:
        params = _parse(InspectParams, request)
        endpoint_id = _require_endpoint_id(params, "inspect payloads")
        page, total = self.registry.inspect(endpoint_id, params.offset, params.limit)

        if total == 0:
            message = f'No payloads stored for endpoint "{endpoint_id}".'
        else:
            preview_chars = self.registry.config.preview_chars
            lines = [
                f"  {params.offset + i + 1}. [{p.timestamp.isoformat()}] "
                f"{_preview(p.body, preview_chars)}"
                for i, p in enumerate(page)
            ]
            message = (
                f'Payloads for endpoint "{endpoint_id}" '
                f"(showing {len(page)} of {total}):\n\n" + "\n".join(lines)
            )

        return Response.ok(
            message,
            endpointId=endpoint_id,
            totalPayloads=total,
            offset=params.offset,
            returned=len(page),
            payloads=[p.to_dict() for p in page],
        )

    def _receive(self, request: Mapping[str, Any]) -> Response:
        params = _parse(ReceiveParams, request)
        endpoint_id = _require_endpoint_id(params, "receive a webhook")
        if params.payload is None:
            raise MissingPayloadError("A payload is required for the receive action.")

        receipt = self.registry.receive(endpoint_id, params.payload, params.headers)
        return Response.ok(
            f'Webhook received and stored for endpoint "{receipt.endpoint.name}" '
            f"({endpoint_id}). Total stored: {receipt.total_stored}.",
            endpointId=endpoint_id,
            payloadId=receipt.payload.id,
            timestamp=receipt.payload.timestamp.isoformat(),
            totalStored=receipt.total_stored,
        )

    def _clear(self, request: Mapping[str, Any]) -> Response:
        endpoint_id = _require_endpoint_id(_parse(_Params, request), "clear payloads")
        cleared = self.registry.clear(endpoint_id)
        return Response.ok(
            f'Cleared {cleared} payload(s) from endpoint "{endpoint_id}".',
            endpointId=endpoint_id,
            payloadsCleared=cleared,
        )


def _preview(body: Any, limit: int) -> str:
    if isinstance(body, str):
        text = body
    else:
        try:
            text = json.dumps(body, default=str)
        except (TypeError, ValueError):
            # non-string keys, circular references
            text = repr(body)
    return text[:limit] + "..." if len(text) > limit else text
