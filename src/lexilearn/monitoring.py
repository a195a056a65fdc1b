"""Monitoring configuration for the practice app."""
from prometheus_client import Counter, Histogram, start_http_server

# Session metrics
sessions_completed = Counter(
    "lexilearn_sessions_completed_total",
    "Total number of practice sessions completed",
    ["kind"],
)

word_outcomes = Counter(
    "lexilearn_word_outcomes_total",
    "Spelling words finished, by outcome",
    ["outcome"],  # correct, incorrect
)

# Generation metrics
generation_requests = Counter(
    "lexilearn_generation_requests_total",
    "Total number of content generation requests",
    ["kind"],
)

generation_errors = Counter(
    "lexilearn_generation_errors_total",
    "Total number of failed content generation requests",
    ["kind"],
)

generation_duration = Histogram(
    "lexilearn_generation_duration_seconds",
    "Duration of content generation requests in seconds",
    ["kind"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
)

# Storage metrics
storage_errors = Counter(
    "lexilearn_storage_errors_total",
    "Total number of failed key-value store operations",
    ["operation"],
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
