"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at the /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Booking lifecycle metrics
booking_transitions = Counter(
    "booking_transitions_total",
    "Booking lifecycle outcomes",
    ["operation", "outcome"],  # request/confirm/reject, ok/insufficient_inventory/...
)

booking_latency = Histogram(
    "booking_operation_latency_seconds",
    "Latency of booking lifecycle operations",
    ["operation"],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
)

# Availability checker
availability_checks = Counter(
    "availability_checks_total",
    "Availability checker decisions",
    ["result"],  # available, fast_path_rejected, overlap_rejected
)

# Inventory
inventory_conflicts = Counter(
    "inventory_conflicts_total",
    "Atomic room reservations that lost against the live counter",
)

expiry_rooms_released = Counter(
    "expiry_rooms_released_total",
    "Rooms returned to inventory by the expiry sweeper",
)

expired_bookings = Counter(
    "expired_bookings_total",
    "Bookings moved to expired by the sweeper",
    ["previous_status"],  # confirmed, pending
)

# Cache metrics
cache_operations = Counter(
    "cache_operations_total",
    "Cache operations",
    ["operation", "result"],  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    """Render every registered collector in the Prometheus text format."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )


def record_booking_transition(operation: str, outcome: str):
    booking_transitions.labels(operation=operation, outcome=outcome).inc()


def record_availability(result: str):
    availability_checks.labels(result=result).inc()


def record_cache_operation(operation: str, hit: bool):
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
