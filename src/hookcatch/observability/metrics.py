from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, generate_latest

WEBHOOKS_RECEIVED = Counter(
    "hookcatch_webhooks_received_total",
    "Total webhook payloads stored",
    ["endpoint"],
)

WEBHOOKS_REJECTED = Counter(
    "hookcatch_webhooks_rejected_total",
    "Total webhook deliveries rejected",
    ["reason"],  # error code
)

PAYLOADS_EVICTED = Counter(
    "hookcatch_payloads_evicted_total",
    "Payloads dropped because an endpoint reached its capacity",
)

REGISTERED_ENDPOINTS = Gauge(
    "hookcatch_registered_endpoints",
    "Current registered endpoints",
)

DISPATCH_REQUESTS = Counter(
    "hookcatch_dispatch_total",
    "Dispatched receiver actions",
    ["action", "outcome"],  # outcome: success/error
)


def generate_metrics() -> bytes:
    return generate_latest()


def get_content_type() -> str:
    return CONTENT_TYPE_LATEST
