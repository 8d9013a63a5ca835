from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint']
)

# account lifecycle: signup, login_success, login_rejected, reset_requested, password_reset
auth_events_total = Counter('auth_events_total', 'Account lifecycle events', ['event'])

review_decisions_total = Counter('review_decisions_total', 'Project review decisions', ['decision'])

notifications_total = Counter('notifications_total', 'Outbox delivery attempts', ['outcome'])

cache_hits_total = Counter('cache_hits_total', 'Total cache hits')
cache_misses_total = Counter('cache_misses_total', 'Total cache misses')

def metrics_endpoint():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
