"""Prometheus metrics for the application"""
from prometheus_client import Counter, REGISTRY


def _counter(name, documentation, labelnames=()):
    """Create a counter, reusing the registered one when the module is re-imported"""
    try:
        return Counter(name, documentation, labelnames)
    except ValueError:
        return REGISTRY._names_to_collectors.get(name)


# Upload metrics
successful_uploads_counter = _counter(
    'vision_successful_uploads_total',
    'Total number of videos uploaded to PeerTube'
)

failed_uploads_counter = _counter(
    'vision_failed_uploads_total',
    'Total number of video uploads that failed',
    ['stage']
)

# Remote reconciliation metrics
remote_delete_failures_counter = _counter(
    'vision_remote_delete_failures_total',
    'Remote video deletions that failed and were skipped'
)

peertube_token_refresh_counter = _counter(
    'vision_peertube_token_refresh_total',
    'PeerTube access token refreshes',
    ['status']
)

# Lifecycle metrics
cascade_deletes_counter = _counter(
    'vision_cascade_deletes_total',
    'Cascade deletes executed',
    ['kind']
)
