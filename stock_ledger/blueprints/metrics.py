"""
Prometheus metrics for the ledger API.

/metrics is unauthenticated; restrict it at the network level.
"""
import os
import time

from flask import Blueprint, Response, request, g
from prometheus_client import (
    Counter, Histogram, Gauge, CollectorRegistry, REGISTRY, CONTENT_TYPE_LATEST,
    generate_latest, multiprocess
)

metrics_bp = Blueprint('metrics', __name__)

# Gunicorn workers write to PROMETHEUS_MULTIPROC_DIR; scrape through a collector
MULTIPROCESS_MODE = 'PROMETHEUS_MULTIPROC_DIR' in os.environ

if MULTIPROCESS_MODE:
    registry = CollectorRegistry()
    multiprocess.MultiProcessCollector(registry)
    _metric_registry = None
else:
    registry = REGISTRY
    _metric_registry = REGISTRY

http_requests_total = Counter(
    'http_requests_total',
    'HTTP requests by route template and status',
    ['method', 'route', 'http_status'],
    registry=_metric_registry
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request latency in seconds',
    ['method', 'route'],
    registry=_metric_registry,
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0)
)

http_requests_in_flight = Gauge(
    'http_requests_in_flight',
    'HTTP requests currently being processed',
    registry=_metric_registry,
    multiprocess_mode='livesum'
)

# One increment per atomic scope; outcome is committed, rejected, inconsistent or error
ledger_operations_total = Counter(
    'inventory_ledger_operations_total',
    'Stock-writing operations by outcome',
    ['operation', 'outcome'],
    registry=_metric_registry
)


def _route_label():
    """Route template (e.g. /inventory/exits/<int:exit_id>) so ids do not explode cardinality."""
    if request.url_rule is not None:
        return request.url_rule.rule
    return 'unmatched'


def setup_metrics_instrumentation(app):
    """Register request hooks on the app. Called from create_app."""

    @app.before_request
    def start_request_timer():
        if request.path == '/metrics':
            return
        g._metrics_started_at = time.perf_counter()
        http_requests_in_flight.inc()

    @app.after_request
    def record_request(response):
        started_at = g.get('_metrics_started_at')
        if started_at is None:
            return response

        route = _route_label()
        http_request_duration_seconds.labels(method=request.method, route=route).observe(
            time.perf_counter() - started_at
        )
        http_requests_total.labels(
            method=request.method, route=route, http_status=response.status_code
        ).inc()
        return response

    @app.teardown_request
    def release_in_flight(exception=None):
        # Runs even when after_request is skipped by an unhandled error
        if g.pop('_metrics_started_at', None) is not None:
            http_requests_in_flight.dec()


@metrics_bp.route('/metrics')
def metrics():
    """Prometheus exposition format."""
    return Response(generate_latest(registry), mimetype=CONTENT_TYPE_LATEST)
