"""Endpoint registry for webhook receiving.

Owns endpoint identity and configuration and composes one PayloadStore per
endpoint:
- Registration with optional shared secret and capacity
- Signature-checked delivery into the endpoint's store
- Paged inspection and clearing of stored payloads
- Unregistration that removes an endpoint and its history together

Usage:
    registry = EndpointRegistry()

    endpoint = registry.register("github-push", secret="s3cret", max_payloads=50)
    receipt = registry.receive("github-push", body, headers)
    page, total = registry.inspect("github-push", offset=0, limit=10)
"""

from __future__ import annotations

import re
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

import structlog
from pydantic import SecretStr

from hookcatch.core.config import ReceiverConfig, get_config
from hookcatch.errors import (
    DuplicateEndpointError,
    EndpointNotFoundError,
    InvalidEndpointIdError,
    InvalidParameterError,
    InvalidSignatureError,
    MissingEndpointIdError,
    MissingPayloadError,
    RegistryFullError,
)
from hookcatch.observability.metrics import (
    PAYLOADS_EVICTED,
    REGISTERED_ENDPOINTS,
    WEBHOOKS_RECEIVED,
    WEBHOOKS_REJECTED,
)
from hookcatch.webhooks.store import Payload, PayloadStore
from hookcatch.webhooks.verifier import SignatureVerifier

logger = structlog.get_logger()

_ENDPOINT_ID_PATTERN = re.compile(r"[A-Za-z0-9-]+")


def is_valid_endpoint_id(endpoint_id: Any) -> bool:
    """Endpoint ids are non-empty strings of ASCII letters, digits and hyphens."""
    return isinstance(endpoint_id, str) and _ENDPOINT_ID_PATTERN.fullmatch(endpoint_id) is not None


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class Endpoint:
    """A registered webhook destination.

    The secret is held as a SecretStr so its repr and str are masked.
    """

    id: str
    name: str
    max_payloads: int
    secret: SecretStr | None = None
    created_at: datetime = field(default_factory=_utc_now)

    @property
    def has_secret(self) -> bool:
        return self.secret is not None

    def to_dict(self) -> dict[str, Any]:
        """Public representation. Never includes the secret."""
        return {
            "id": self.id,
            "name": self.name,
            "createdAt": self.created_at.isoformat(),
            "hasSecret": self.has_secret,
            "maxPayloads": self.max_payloads,
        }


@dataclass(frozen=True)
class EndpointSummary:
    """Endpoint listing entry with its current payload count."""

    endpoint: Endpoint
    payload_count: int

    def to_dict(self) -> dict[str, Any]:
        data = self.endpoint.to_dict()
        data["payloadCount"] = self.payload_count
        return data


@dataclass(frozen=True)
class Receipt:
    """Outcome of an accepted delivery."""

    endpoint: Endpoint
    payload: Payload
    total_stored: int


@dataclass
class _Entry:
    endpoint: Endpoint
    store: PayloadStore


class EndpointRegistry:
    """In-memory registry of webhook endpoints and their payload stores.

    The endpoint map is guarded by one lock; each store has its own lock.
    Unregistering removes the map entry first and then closes the store, so
    a concurrent receive either lands before the close (and is counted as
    removed) or fails with ENDPOINT_NOT_FOUND.
    """

    def __init__(
        self,
        config: ReceiverConfig | None = None,
        verifier: SignatureVerifier | None = None,
    ) -> None:
        """Initialize the registry.

        Args:
            config: Receiver settings. Defaults to the cached global config.
            verifier: Signature verifier. Built from config when omitted.
        """
        self.config = config or get_config()
        self.verifier = verifier or SignatureVerifier(
            algorithm=self.config.signature_algorithm,
            header_name=self.config.signature_header,
        )
        self._lock = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    def __enter__(self) -> EndpointRegistry:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, endpoint_id: object) -> bool:
        with self._lock:
            return endpoint_id in self._entries

    def _generate_id(self) -> str:
        while True:
            candidate = uuid4().hex[: self.config.generated_id_length]
            if candidate not in self._entries:
                return candidate

    def _lookup(self, endpoint_id: str | None) -> _Entry:
        if not endpoint_id:
            raise MissingEndpointIdError("An endpoint ID is required.")
        with self._lock:
            entry = self._entries.get(endpoint_id)
        if entry is None:
            raise EndpointNotFoundError(endpoint_id)
        return entry

    def register(
        self,
        endpoint_id: str | None = None,
        name: str | None = None,
        secret: str | SecretStr | None = None,
        max_payloads: int | None = None,
    ) -> Endpoint:
        """Register a new endpoint with an empty payload store.

        Args:
            endpoint_id: Unique id. Generated when omitted.
            name: Display name. Defaults to the id.
            secret: Shared secret. When set, every delivery must be signed.
            max_payloads: History capacity. Defaults to config.default_max_payloads.

        Raises:
            InvalidEndpointIdError: If the id contains disallowed characters.
            InvalidParameterError: If max_payloads is not a positive integer.
            DuplicateEndpointError: If the id is already registered.
            RegistryFullError: If config.max_endpoints is reached.
        """
        if max_payloads is None:
            max_payloads = self.config.default_max_payloads
        if isinstance(max_payloads, bool) or not isinstance(max_payloads, int) or max_payloads <= 0:
            raise InvalidParameterError(
                "maxPayloads must be a positive integer", field="maxPayloads"
            )
        if endpoint_id is not None and endpoint_id != "" and not is_valid_endpoint_id(endpoint_id):
            raise InvalidEndpointIdError(str(endpoint_id))

        if isinstance(secret, str):
            secret = SecretStr(secret) if secret else None
        elif isinstance(secret, SecretStr) and not secret.get_secret_value():
            secret = None

        with self._lock:
            if not endpoint_id:
                endpoint_id = self._generate_id()
            if endpoint_id in self._entries:
                raise DuplicateEndpointError(endpoint_id)
            limit = self.config.max_endpoints
            if limit and len(self._entries) >= limit:
                raise RegistryFullError(limit)

            endpoint = Endpoint(
                id=endpoint_id,
                name=name or endpoint_id,
                max_payloads=max_payloads,
                secret=secret,
            )
            self._entries[endpoint_id] = _Entry(endpoint, PayloadStore(endpoint_id, max_payloads))

        if self.config.metrics_enabled:
            REGISTERED_ENDPOINTS.inc()
        logger.info(
            "Endpoint registered",
            endpoint_id=endpoint.id,
            has_secret=endpoint.has_secret,
            max_payloads=max_payloads,
        )
        return endpoint

    def unregister(self, endpoint_id: str | None) -> tuple[Endpoint, int]:
        """Remove an endpoint and its payload history.

        Returns:
            Tuple of (removed endpoint, number of payloads removed).
        """
        if not endpoint_id:
            raise MissingEndpointIdError("An endpoint ID is required to unregister.")
        with self._lock:
            entry = self._entries.pop(endpoint_id, None)
            if entry is None:
                raise EndpointNotFoundError(endpoint_id)
            removed = entry.store.close()

        if self.config.metrics_enabled:
            REGISTERED_ENDPOINTS.dec()
        logger.info("Endpoint unregistered", endpoint_id=endpoint_id, payloads_removed=removed)
        return entry.endpoint, removed

    def get(self, endpoint_id: str | None) -> Endpoint:
        return self._lookup(endpoint_id).endpoint

    def list_endpoints(self) -> list[EndpointSummary]:
        """All endpoints in registration order."""
        with self._lock:
            entries = list(self._entries.values())
        return [EndpointSummary(entry.endpoint, len(entry.store)) for entry in entries]

    def receive(
        self,
        endpoint_id: str | None,
        body: Any,
        headers: Mapping[str, Any] | None = None,
    ) -> Receipt:
        """Accept a delivery for an endpoint.

        Order: endpoint lookup, signature check (when a secret is set),
        append, eviction. The first failure stops the sequence.

        Returns:
            Receipt with the endpoint, the stored payload and the total
            stored after eviction.

        Raises:
            MissingEndpointIdError, MissingPayloadError, EndpointNotFoundError,
            InvalidSignatureError
        """
        if not endpoint_id:
            raise MissingEndpointIdError("An endpoint ID is required to receive a webhook.")
        if body is None:
            raise MissingPayloadError("A payload is required for the receive action.")

        try:
            entry = self._lookup(endpoint_id)
            result = self.verifier.verify_headers(entry.endpoint.secret, headers, body)
            if not result:
                logger.warning(
                    "Webhook signature rejected",
                    endpoint_id=endpoint_id,
                    status=result.status.value,
                )
                raise InvalidSignatureError(
                    f"Signature validation failed: {result.error}.",
                    status=result.status.value,
                )

            payload = Payload(body=body, headers=dict(headers or {}))
            total, evicted = entry.store.append(payload)
        except (EndpointNotFoundError, InvalidSignatureError) as e:
            if self.config.metrics_enabled:
                WEBHOOKS_REJECTED.labels(reason=str(e.code)).inc()
            raise

        if self.config.metrics_enabled:
            WEBHOOKS_RECEIVED.labels(endpoint=endpoint_id).inc()
            if evicted:
                PAYLOADS_EVICTED.inc(evicted)
        if evicted:
            logger.debug("Payload evicted", endpoint_id=endpoint_id, evicted=evicted)
        logger.debug("Payload received", endpoint_id=endpoint_id, payload_id=payload.id, total=total)
        return Receipt(entry.endpoint, payload, total)

    def inspect(
        self,
        endpoint_id: str | None,
        offset: int = 0,
        limit: int | None = None,
    ) -> tuple[list[Payload], int]:
        """Page through an endpoint's stored payloads in receipt order."""
        return self._lookup(endpoint_id).store.page(offset, limit)

    def clear(self, endpoint_id: str | None) -> int:
        """Drop every stored payload of an endpoint. Returns the count removed."""
        cleared = self._lookup(endpoint_id).store.clear()
        logger.info("Endpoint payloads cleared", endpoint_id=endpoint_id, payloads_cleared=cleared)
        return cleared

    def close(self) -> None:
        """Drop every endpoint and close their stores."""
        with self._lock:
            entries = list(self._entries.values())
            self._entries.clear()
            for entry in entries:
                entry.store.close()

        if self.config.metrics_enabled and entries:
            REGISTERED_ENDPOINTS.dec(len(entries))
        logger.info("Registry closed", endpoints_removed=len(entries))


__all__ = [
    "Endpoint",
    "EndpointRegistry",
    "EndpointSummary",
    "Receipt",
    "is_valid_endpoint_id",
]
