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

BOOKING_OUTCOMES = Counter(
    "booking_attempts_total",
    "Booking attempts by outcome",
    ["outcome"],
)

CHAT_RESPONSES = Counter(
    "chat_responses_total",
    "Chat replies by the responder that produced them",
    ["responder"],
)


def render_metrics() -> tuple[bytes, str]:
    return generate_latest(), CONTENT_TYPE_LATEST
