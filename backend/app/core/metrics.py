"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Check-in metrics
validation_attempts = Counter(
    'validation_attempts_total',
    'Total attendance validation attempts',
    ['outcome']  # validated, payment_required, already_validated, not_found, error
)

validation_latency = Histogram(
    'validation_latency_seconds',
    'Attendance validation latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

# Intake metrics
registrations_created = Counter(
    'registrations_created_total',
    'Registrations accepted by the public intake form'
)

registration_rejections = Counter(
    'registration_rejections_total',
    'Registrations rejected at intake',
    ['reason']  # duplicate, inactive_event
)

# Record store metrics
db_operations = Counter(
    'db_operations_total',
    'Total record store operations',
    ['operation']  # read, insert, update, delete
)

db_retries = Counter(
    'db_retry_attempts_total',
    'Record store read retries due to transient transport errors'
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    """
    Prometheus metrics endpoint.

    Usage:
        @app.get("/metrics")
        def metrics():
            return metrics_endpoint()
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_validation(outcome: str):
    """Record validation outcome."""
    validation_attempts.labels(outcome=outcome).inc()


def record_db_operation(operation: str):
    """Record record store operation. Operation: read, insert, update, delete"""
    db_operations.labels(operation=operation).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
