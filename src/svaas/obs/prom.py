"""Prometheus instrumentation for the SVaaS SDK.

Metrics live on a private registry so an embedding application decides
whether (and where) to expose them. Labels stay low-cardinality: service name,
HTTP method and a collapsed outcome/reason.
"""
from __future__ import annotations

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
    CONTENT_TYPE_LATEST,
)

# Registry must be created before metric objects reference it.
REGISTRY = CollectorRegistry()

REQUEST_COUNTER = Counter(
    "svaas_requests_total",
    "Signed requests dispatched to the SVaaS services.",
    ["service", "method", "outcome"],
    registry=REGISTRY,
)
LAT_HIST = Histogram(
    "svaas_request_latency_ms",
    "Round-trip latency of SVaaS requests (ms).",
    ["service"],
    buckets=(5, 10, 25, 50, 75, 100, 150, 250, 500, 1000, 2000, 5000),
    registry=REGISTRY,
)
VERIFY_COUNTER = Counter(
    "svaas_signature_verifications_total",
    "Inbound signature verifications by result and failure reason.",
    ["result", "reason"],
    registry=REGISTRY,
)


def observe_request(service: str, method: str, outcome: str, latency_ms: float | None = None) -> None:
    REQUEST_COUNTER.labels(service=service, method=method.upper(), outcome=outcome).inc()
    if latency_ms is not None:
        LAT_HIST.labels(service=service).observe(latency_ms)


def observe_verification(verified: bool, reason: str) -> None:
    result = "ok" if verified else "rejected"
    VERIFY_COUNTER.labels(result=result, reason=reason).inc()


def prometheus_latest() -> tuple[bytes, str]:
    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST


__all__ = [
    "REGISTRY",
    "observe_request",
    "observe_verification",
    "prometheus_latest",
]
