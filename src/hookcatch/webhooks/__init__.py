"""Hookcatch Webhook Receiver.

Registers logical inbound endpoints, accepts delivered payloads for them,
optionally authenticates deliveries with a per-endpoint HMAC-SHA256 shared
secret, and keeps a bounded, inspectable history of recent payloads.

Security Features:
- Constant-time signature comparison
- Fail-closed verification when a secret is configured
- Secrets held as SecretStr and never returned in responses

Usage:
    from hookcatch.webhooks import create_receiver

    receiver = create_receiver()
    receiver.dispatch({"action": "register", "endpointId": "hook-1", "secret": "k"})
    receiver.dispatch({
        "action": "receive",
        "endpointId": "hook-1",
        "payload": body,
        "headers": {"x-signature-256": signature},
    })
    response = receiver.dispatch({"action": "inspect", "endpointId": "hook-1"})
    print(response.metadata["payloads"])
"""

from __future__ import annotations

from hookcatch.core.config import ReceiverConfig
from hookcatch.webhooks.dispatcher import Action, RequestDispatcher, Response
from hookcatch.webhooks.registry import (
    Endpoint,
    EndpointRegistry,
    EndpointSummary,
    Receipt,
    is_valid_endpoint_id,
)
from hookcatch.webhooks.store import Payload, PayloadStore
from hookcatch.webhooks.verifier import (
    SignatureVerifier,
    VerificationResult,
    VerificationStatus,
    canonical_body,
    find_header,
    parse_signature_header,
)


def create_receiver(config: ReceiverConfig | None = None) -> RequestDispatcher:
    """Create a dispatcher bound to a fresh registry."""
    return RequestDispatcher(EndpointRegistry(config=config))


__all__ = [
    # Entry point
    "create_receiver",
    "RequestDispatcher",
    "Action",
    "Response",
    # Registry and store
    "EndpointRegistry",
    "Endpoint",
    "EndpointSummary",
    "Receipt",
    "PayloadStore",
    "Payload",
    "is_valid_endpoint_id",
    # Verification
    "SignatureVerifier",
    "VerificationResult",
    "VerificationStatus",
    "canonical_body",
    "find_header",
    "parse_signature_header",
]
