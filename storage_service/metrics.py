"""Prometheus metrics for inbound requests and calls to collaborating services"""
import time

from fastapi import Request, Response
from prometheus_client import Counter, Histogram, CONTENT_TYPE_LATEST, generate_latest


HTTP_REQUESTS_TOTAL = Counter(
    "storage_http_requests_total",
    "Total HTTP requests handled",
    ["method", "path", "status"],
)

HTTP_REQUEST_DURATION = Histogram(
    "storage_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "path"],
)

EXTERNAL_API_REQUESTS_TOTAL = Counter(
    "storage_external_api_requests_total",
    "Requests sent to collaborating services",
    ["endpoint", "status"],
)

EXTERNAL_API_REQUEST_DURATION = Histogram(
    "storage_external_api_request_duration_seconds",
    "Latency of requests sent to collaborating services",
    ["endpoint"],
)


def categorize_status(status_code: int) -> str:
    """Collapse a status code into its class (2xx, 4xx, ...)"""
    if status_code <= 0:
        return "error"
    return f"{status_code // 100}xx"


def record_external_request(endpoint: str, status: str, duration: float) -> None:
    EXTERNAL_API_REQUESTS_TOTAL.labels(endpoint=endpoint, status=status).inc()
    EXTERNAL_API_REQUEST_DURATION.labels(endpoint=endpoint).observe(duration)


async def metrics_middleware(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)

    # Use the route template so ids do not explode label cardinality
    route = request.scope.get("route")
    path = getattr(route, "path", "unmatched")
    if path == "/metrics":
        return response

    HTTP_REQUESTS_TOTAL.labels(
        method=request.method,
        path=path,
        status=categorize_status(response.status_code),
    ).inc()
    HTTP_REQUEST_DURATION.labels(method=request.method, path=path).observe(time.perf_counter() - start)
    return response


def metrics_response() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
