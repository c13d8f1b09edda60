"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Booking metrics
booking_attempts = Counter(
    'ticket_booking_attempts_total',
    'Total ticket booking attempts',
    ['status']  # success, conflict, not_found, error
)

booking_latency = Histogram(
    'ticket_booking_latency_seconds',
    'Booking transaction latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

# Authorization metrics
auth_denials = Counter(
    'auth_denials_total',
    'Requests rejected by the authorization gate',
    ['reason']  # unauthenticated, forbidden
)

# Repair metrics
payments_repaired = Counter(
    'payments_repaired_total',
    'Payments backfilled for bookings that had none'
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_booking_attempt(status: str):
    """Record booking attempt. Status: success, conflict, not_found, error"""
    booking_attempts.labels(status=status).inc()


def record_auth_denial(reason: str):
    """Record a gate rejection. Reason: unauthenticated, forbidden"""
    auth_denials.labels(reason=reason).inc()
