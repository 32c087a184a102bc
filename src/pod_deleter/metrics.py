"""
Prometheus metrics for Pod Deleter
"""

import logging
import requests
from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    REGISTRY,
    generate_latest,
    start_http_server,
)
from prometheus_client.exposition import CONTENT_TYPE_LATEST

logger = logging.getLogger(__name__)

PODS_DELETED = Counter(
    'pod_deleter_pods_deleted_total',
    'Total number of pods deleted (or selected for deletion in dry-run mode)',
    ['namespace', 'reason', 'dry_run']
)

PODS_SKIPPED = Counter(
    'pod_deleter_pods_skipped_total',
    'Total number of pods skipped, by cause',
    ['cause']
)

PASSES = Counter(
    'pod_deleter_passes_total',
    'Total number of reconciliation passes, by result',
    ['result']
)

PASS_DURATION = Histogram(
    'pod_deleter_pass_duration_seconds',
    'Duration of reconciliation passes'
)


def record_deleted(namespace, reason, dry_run):
    PODS_DELETED.labels(
        namespace=namespace,
        reason=reason,
        dry_run=str(bool(dry_run)).lower()
    ).inc()


def record_skipped(cause):
    PODS_SKIPPED.labels(cause=cause).inc()


def record_pass(result, duration):
    PASSES.labels(result=result).inc()
    PASS_DURATION.observe(duration)


def start_metrics_server(port):
    """Expose /metrics over HTTP on the given port"""
    start_http_server(port)
    logger.info(f"Serving Prometheus metrics on port {port}")


def push_to_gateway(pushgateway_url, job_name, registry: CollectorRegistry = REGISTRY, timeout=10):
    """Push the registry to a Prometheus Pushgateway, replacing the job's group"""
    url = f"{pushgateway_url.rstrip('/')}/metrics/job/{job_name}"
    response = requests.put(
        url,
        data=generate_latest(registry),
        headers={'Content-Type': CONTENT_TYPE_LATEST},
        timeout=timeout
    )
    response.raise_for_status()
    logger.debug(f"Pushed metrics to Pushgateway at {url}")
