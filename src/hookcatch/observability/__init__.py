from hookcatch.observability.metrics import (
    DISPATCH_REQUESTS,
    PAYLOADS_EVICTED,
    REGISTERED_ENDPOINTS,
    WEBHOOKS_RECEIVED,
    WEBHOOKS_REJECTED,
    generate_metrics,
    get_content_type,
)

__all__ = [
    "WEBHOOKS_RECEIVED",
    "WEBHOOKS_REJECTED",
    "PAYLOADS_EVICTED",
    "REGISTERED_ENDPOINTS",
    "DISPATCH_REQUESTS",
    "generate_metrics",
    "get_content_type",
]
