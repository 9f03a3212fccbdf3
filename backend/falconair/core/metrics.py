"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at the /metrics endpoint.
"""

from contextlib import contextmanager

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

from falconair.core.errors import DomainError

# Booking lifecycle metrics
booking_operations = Counter(
    'booking_operations_total',
    'Booking lifecycle operations',
    ['operation', 'status']  # create/cancel/reschedule/checkin x success/rejected
)

booking_latency = Histogram(
    'booking_operation_latency_seconds',
    'Booking lifecycle operation latency',
    ['operation'],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

# Falcon Flyer metrics
miles_awarded = Counter(
    'loyalty_miles_awarded_total',
    'Loyalty miles awarded at check-in',
    ['seat_class']
)

points_awarded = Counter(
    'loyalty_points_awarded_total',
    'Loyalty points awarded at check-in',
    ['seat_class']
)

tier_upgrades = Counter(
    'loyalty_tier_upgrades_total',
    'Tier upgrades triggered by check-in',
    ['new_tier']
)

# Database metrics
db_retries = Counter(
    'db_retry_attempts_total',
    'Optimistic-lock retries due to version conflicts',
    ['entity']  # flight, user
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)

redis_connection_errors = Counter(
    'redis_connection_errors_total',
    'Redis connection errors'
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint body."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_booking_operation(operation: str, status: str):
    """Record lifecycle operation. Status: success, rejected, error"""
    booking_operations.labels(operation=operation, status=status).inc()


@contextmanager
def track_booking_operation(operation: str):
    """Time a lifecycle operation and count it as success, rejected (domain error) or error."""
    with booking_latency.labels(operation=operation).time():
        try:
            yield
        except DomainError:
            record_booking_operation(operation, "rejected")
            raise
        except Exception:
            record_booking_operation(operation, "error")
            raise
    record_booking_operation(operation, "success")


def record_reward(seat_class: str, miles: int, points: int):
    miles_awarded.labels(seat_class=seat_class).inc(miles)
    points_awarded.labels(seat_class=seat_class).inc(points)


def record_tier_upgrade(new_tier: str):
    tier_upgrades.labels(new_tier=new_tier).inc()


def record_db_retry(entity: str):
    db_retries.labels(entity=entity).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
