"""Webhook Signature Verification.

HMAC signatures over delivered payload bodies with constant-time
comparison to prevent timing attacks.

Signature header format:
    x-signature-256: sha256=<hex digest>

Body canonicalization (what bytes are signed):
- ``bytes`` bodies are signed verbatim.
- ``str`` bodies are signed as their UTF-8 encoding, verbatim.
- Any other value (dict, list, number, bool) is signed as canonical JSON:
  keys sorted, ``,`` and ``:`` separators with no whitespace, UTF-8,
  non-ASCII characters left unescaped.

Senders that serialize objects differently should deliver the raw body
string instead of a parsed object so both sides hash identical bytes.

Usage:
    from hookcatch.webhooks import SignatureVerifier

    verifier = SignatureVerifier()
    header = verifier.sign(secret, body)
    result = verifier.verify(secret, header, body)
"""

from __future__ import annotations

import hashlib
import hmac
import json
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import SecretStr

from hookcatch.errors import InvalidParameterError


class VerificationStatus(Enum):
    """Status of webhook signature verification."""

    VALID = "valid"
    NOT_REQUIRED = "not_required"
    INVALID_SIGNATURE = "invalid_signature"
    MISSING_SIGNATURE = "missing_signature"
    INVALID_FORMAT = "invalid_format"


@dataclass
class VerificationResult:
    """Result of webhook signature verification."""

    valid: bool
    """Whether the delivery is accepted."""

    status: VerificationStatus
    """Detailed verification status."""

    error: str | None = None
    """Error message if verification failed."""

    def __bool__(self) -> bool:
        """Allow using result in boolean context."""
        return self.valid


def canonical_body(body: Any) -> bytes:
    """Return the exact bytes a signature is computed over.

    Raises:
        InvalidParameterError: If a structured body cannot be serialized to JSON.
    """
    if isinstance(body, bytes | bytearray | memoryview):
        return bytes(body)
    try:
        if isinstance(body, str):
            return body.encode("utf-8")
        return json.dumps(
            body,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        ).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise InvalidParameterError(
            f"Payload cannot be serialized for signing: {e}", field="payload"
        ) from e


def parse_signature_header(
    header_value: str,
    prefix: str = "",
) -> str | None:
    """Extract signature from header value.

    Args:
        header_value: The header value to parse, e.g. "sha256=abc123".
        prefix: Required prefix to strip (e.g., "sha256=").

    Returns:
        The extracted signature, or None if the prefix is missing or nothing follows it.
    """
    if not header_value:
        return None

    if prefix:
        if not header_value.startswith(prefix):
            return None
        header_value = header_value[len(prefix) :]

    return header_value or None


def find_header(headers: Mapping[str, Any] | None, name: str) -> str | None:
    """Case-insensitive header lookup. Non-string values are skipped."""
    if not headers:
        return None
    wanted = name.lower()
    for key, value in headers.items():
        if isinstance(key, str) and key.lower() == wanted:
            if isinstance(value, str):
                return value
    return None


class SignatureVerifier:
    """HMAC signer and verifier for webhook payload bodies."""

    def __init__(
        self,
        algorithm: str = "sha256",
        header_name: str = "x-signature-256",
    ) -> None:
        """Initialize the verifier.

        Args:
            algorithm: hashlib algorithm name (default: sha256).
            header_name: Header carrying the signature.

        Raises:
            ValueError: If the algorithm is not available in hashlib.
        """
        if algorithm not in hashlib.algorithms_available:
            raise ValueError(f"Unsupported signature algorithm: {algorithm}")
        self.algorithm = algorithm
        self.header_name = header_name

    @property
    def prefix(self) -> str:
        """Algorithm tag prepended to hex digests."""
        return f"{self.algorithm}="

    def compute_signature(self, secret: str | SecretStr, body: Any) -> str:
        """Compute the bare hex HMAC of a body."""
        if isinstance(secret, SecretStr):
            secret = secret.get_secret_value()
        return hmac.new(
            secret.encode("utf-8"),
            canonical_body(body),
            self.algorithm,
        ).hexdigest()

    def sign(self, secret: str | SecretStr, body: Any) -> str:
        """Compute a header-ready signature, e.g. ``sha256=<hex>``."""
        return self.prefix + self.compute_signature(secret, body)

    def _constant_time_compare(self, a: str, b: str) -> bool:
        return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))

    def verify(
        self,
        secret: SecretStr | None,
        header_value: str | None,
        body: Any,
    ) -> VerificationResult:
        """Verify a delivery's signature.

        Endpoints without a secret accept every delivery. With a secret the
        check fails closed: a missing or malformed header is rejected.

        Args:
            secret: The endpoint's shared secret, or None.
            header_value: Value of the signature header as delivered.
            body: The delivered body.

        Returns:
            VerificationResult with status and details.
        """
        if secret is None:
            return VerificationResult(valid=True, status=VerificationStatus.NOT_REQUIRED)

        if not header_value:
            return VerificationResult(
                valid=False,
                status=VerificationStatus.MISSING_SIGNATURE,
                error=f"missing {self.header_name} header",
            )

        signature = parse_signature_header(header_value, prefix=self.prefix)
        if signature is None:
            return VerificationResult(
                valid=False,
                status=VerificationStatus.INVALID_FORMAT,
                error=f"expected {self.header_name} in the form {self.prefix}<hex>",
            )

        expected = self.compute_signature(secret, body)
        if self._constant_time_compare(signature, expected):
            return VerificationResult(valid=True, status=VerificationStatus.VALID)

        return VerificationResult(
            valid=False,
            status=VerificationStatus.INVALID_SIGNATURE,
            error=f"the provided signature does not match the expected HMAC-{self.algorithm.upper()} signature",
        )

    def verify_headers(
        self,
        secret: SecretStr | None,
        headers: Mapping[str, Any] | None,
        body: Any,
    ) -> VerificationResult:
        """Verify using the configured header from a header mapping."""
        return self.verify(secret, find_header(headers, self.header_name), body)
