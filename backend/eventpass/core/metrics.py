"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Payment verification / booking metrics
booking_attempts = Counter(
    'booking_attempts_total',
    'Total payment verification attempts',
    ['status']  # success, invalid_signature, duplicate, rejected
)

verify_latency = Histogram(
    'payment_verify_latency_seconds',
    'Payment verification and booking latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

# Gateway metrics
gateway_orders = Counter(
    'gateway_orders_total',
    'Payment gateway order requests',
    ['result']  # created, error
)

# Auth metrics
auth_events = Counter(
    'auth_events_total',
    'Registration and login outcomes',
    ['event', 'result']  # register/login, success/failure
)

passes_served = Counter(
    'passes_served_total',
    'Passes returned by the my-passes endpoint'
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_booking_attempt(status: str):
    """Record booking attempt. Status: success, invalid_signature, duplicate, rejected"""
    booking_attempts.labels(status=status).inc()


def record_gateway_order(created: bool):
    result = "created" if created else "error"
    gateway_orders.labels(result=result).inc()


def record_auth_event(event: str, success: bool):
    result = "success" if success else "failure"
    auth_events.labels(event=event, result=result).inc()
