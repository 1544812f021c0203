# Prometheus metrics
from prometheus_client import Counter, Gauge, Histogram

REQUEST_COUNT = Counter(
    "sentiment_analyzer_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)
REQUEST_DURATION = Histogram(
    "sentiment_analyzer_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
)
ACTIVE_REQUESTS = Gauge(
    "sentiment_analyzer_active_requests", "Number of active HTTP requests"
)
BACKEND_UP = Gauge(
    "sentiment_analyzer_backend_up", "Sentiment backend availability (1 = up, 0 = down)"
)
BACKEND_REQUEST_COUNT = Counter(
    "sentiment_analyzer_backend_requests_total",
    "Total requests to the sentiment backend",
    ["endpoint", "status"],
)
BACKEND_REQUEST_DURATION = Histogram(
    "sentiment_analyzer_backend_request_duration_seconds",
    "Sentiment backend request duration",
    ["endpoint"],
)
