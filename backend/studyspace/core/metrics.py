"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Booking metrics
booking_attempts = Counter(
    'seat_booking_attempts_total',
    'Total seat booking attempts',
    ['status']  # success, error, or a BookingError code (seat_conflict, invalid_request, ...)
)

booking_latency = Histogram(
    'seat_booking_latency_seconds',
    'Seat booking latency including optimistic-lock retries',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)

booking_cancellations = Counter(
    'seat_booking_cancellations_total',
    'Seat booking cancellations',
    ['result']  # cancelled, noop
)

# Database metrics
db_retries = Counter(
    'db_retry_attempts_total',
    'Booking transaction restarts due to version token conflicts'
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/invalidate, hit/miss
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_booking_attempt(status: str):
    booking_attempts.labels(status=status).inc()


def record_cancellation(cancelled: bool):
    result = "cancelled" if cancelled else "noop"
    booking_cancellations.labels(result=result).inc()


def record_db_retry():
    db_retries.inc()


def record_cache_operation(operation: str, hit: bool):
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
