"""Hookcatch - in-process webhook receiver with signed, bounded payload history."""

from hookcatch.errors import ErrorCode, HookcatchError
from hookcatch.webhooks import (
    Action,
    EndpointRegistry,
    RequestDispatcher,
    Response,
    SignatureVerifier,
    create_receiver,
)

__version__ = "0.1.0"

__all__ = [
    "Action",
    "EndpointRegistry",
    "ErrorCode",
    "HookcatchError",
    "RequestDispatcher",
    "Response",
    "SignatureVerifier",
    "create_receiver",
    "__version__",
]
