from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status_code"],
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "path"],
)

RESERVATION_EVENTS = Counter(
    "reservation_events_total",
    "Reservation lifecycle events",
    ["event"],
)


def record_reservation_event(event: str, amount: int = 1) -> None:
    if amount > 0:
        RESERVATION_EVENTS.labels(event=event).inc(amount)


def render_metrics() -> tuple[bytes, str]:
    return generate_latest(), CONTENT_TYPE_LATEST
