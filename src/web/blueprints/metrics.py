"""
Prometheus metrics blueprint for monitoring and observability.

Exposes /metrics in Prometheus text format: lookup outcomes, which cascade
step produced each hit, dictionary source latency, HTTP request metrics and
basic process stats.
"""

import time

import psutil
from flask import Blueprint, Response
from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    generate_latest,
    CONTENT_TYPE_LATEST,
    REGISTRY,
)

from common.base.logging_config import get_logger

logger = get_logger(__name__)

metrics_bp = Blueprint('metrics', __name__)

# Track server start time
_SERVER_START_TIME = time.time()

# System metrics
cpu_usage_gauge = Gauge(
    'wordlens_cpu_usage_percent',
    'Current CPU usage percentage'
)

memory_usage_gauge = Gauge(
    'wordlens_memory_usage_percent',
    'Current memory usage percentage'
)

uptime_seconds = Gauge(
    'wordlens_uptime_seconds',
    'Server uptime in seconds'
)

# Lookup metrics
lookups_total = Counter(
    'wordlens_lookups_total',
    'Lookups answered, by outcome',
    ['outcome']
)

cascade_hits_total = Counter(
    'wordlens_cascade_hits_total',
    'Resolved lookups by the cascade step that found the page',
    ['step']
)

source_request_duration_seconds = Histogram(
    'wordlens_source_request_duration_seconds',
    'Dictionary source request duration in seconds',
    ['action'],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 4.0, 6.0, 8.0)
)

cache_entries = Gauge(
    'wordlens_cache_entries',
    'Entries held in the lookup caches'
)

# HTTP request metrics
http_requests_total = Counter(
    'wordlens_http_requests_total',
    'Total number of HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'wordlens_http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)
)


def observe_source_request(action: str, seconds: float) -> None:
    """Request observer handed to the dictionary service."""
    source_request_duration_seconds.labels(action=action or 'unknown').observe(seconds)


def record_lookup(outcome: str, step: str = None) -> None:
    lookups_total.labels(outcome=outcome).inc()
    if step:
        cascade_hits_total.labels(step=step).inc()


def update_system_metrics():
    """Update process-level metrics (CPU, memory)."""
    try:
        cpu_usage_gauge.set(psutil.cpu_percent(interval=None))
        memory_usage_gauge.set(psutil.virtual_memory().percent)
    except Exception as e:
        logger.warning(f"Error updating system metrics: {e}")


def update_application_metrics():
    """Update application-level metrics (uptime, cache size)."""
    uptime_seconds.set(time.time() - _SERVER_START_TIME)

    from web.blueprints.lookup import get_lookup_state
    state = get_lookup_state()
    if state is not None:
        cache_entries.set(state.cached_entry_count())


@metrics_bp.route('/metrics')
def metrics():
    """
    Prometheus metrics endpoint.

    :return: Prometheus-formatted metrics response
    """
    update_system_metrics()
    update_application_metrics()

    return Response(
        generate_latest(REGISTRY),
        mimetype=CONTENT_TYPE_LATEST
    )


def setup_request_metrics(app):
    """
    Set up request timing middleware for HTTP metrics.

    :param app: Flask application instance
    """
    @app.before_request
    def before_request():
        from flask import g
        g.start_time = time.time()

    @app.after_request
    def after_request(response):
        from flask import g, request

        # Skip metrics endpoint to avoid recursion
        if request.endpoint == 'metrics.metrics':
            return response

        if hasattr(g, 'start_time'):
            duration = time.time() - g.start_time
            endpoint = request.endpoint or request.path

            http_requests_total.labels(
                method=request.method,
                endpoint=endpoint,
                status=response.status_code
            ).inc()

            http_request_duration_seconds.labels(
                method=request.method,
                endpoint=endpoint
            ).observe(duration)

        return response
