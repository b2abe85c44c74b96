"""
Prometheus metrics configuration
"""
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest

# ============================================================================
# HTTP Request Metrics
# ============================================================================

http_requests_total = Counter(
    'http_requests_total',
    'Total number of HTTP requests',
    ['method', 'endpoint', 'status_code']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint', 'status_code'],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)
)

http_errors_total = Counter(
    'http_errors_total',
    'Total number of HTTP errors',
    ['method', 'endpoint', 'status_code', 'error_type']
)

# ============================================================================
# Database Metrics
# ============================================================================

db_queries_total = Counter(
    'db_queries_total',
    'Total number of database queries',
    ['operation', 'table']
)

db_query_duration_seconds = Histogram(
    'db_query_duration_seconds',
    'Database query duration in seconds',
    ['operation', 'table'],
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0)
)

db_connection_pool_checked_out = Gauge(
    'db_connection_pool_checked_out',
    'Connections currently checked out of the pool'
)

# ============================================================================
# Migration Metrics
# ============================================================================

migrations_applied_total = Counter(
    'migrations_applied_total',
    'Migration steps executed',
    ['direction', 'status']  # direction: 'upgrade' | 'downgrade'
)

migration_duration_seconds = Histogram(
    'migration_duration_seconds',
    'Duration of a migration run',
    ['direction'],
    buckets=(0.1, 0.5, 1.0, 5.0, 15.0, 60.0, 300.0)
)

# ============================================================================
# Business Metrics
# ============================================================================

orders_created_total = Counter(
    'orders_created_total',
    'Orders created',
    ['source']
)

order_status_transitions_total = Counter(
    'order_status_transitions_total',
    'Order status changes',
    ['from_status', 'to_status']
)

push_notifications_total = Counter(
    'push_notifications_total',
    'Push notification deliveries',
    ['status']  # status: 'sent', 'failed', 'skipped'
)

seeders_run_total = Counter(
    'seeders_run_total',
    'Seeder executions',
    ['seeder', 'status']
)


def get_metrics() -> bytes:
    """Render the default registry in Prometheus text format"""
    return generate_latest()


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
