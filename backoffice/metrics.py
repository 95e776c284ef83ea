"""Prometheus metrics for the back-office gateway."""

from prometheus_client import Counter, Gauge, Histogram, Info

# Application info
app_info = Info("tsoft_backoffice", "T-Soft back-office gateway application info")
app_info.info({"version": "0.1.0", "name": "tsoft-backoffice"})

# Upstream request metrics
upstream_requests_total = Counter(
    "upstream_requests_total",
    "Total number of upstream endpoint attempts",
    ["operation", "transport", "outcome"],
)

upstream_request_duration_seconds = Histogram(
    "upstream_request_duration_seconds",
    "Time spent on a single upstream transport call",
    ["transport"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
)

# Envelope resolution metrics
envelope_parse_total = Counter(
    "envelope_parse_total",
    "Envelope resolutions by the stage that produced the result",
    ["stage"],
)

# Enrichment metrics
enrichment_fetches_total = Counter(
    "enrichment_fetches_total",
    "Per-entity secondary fetches",
    ["capability", "status"],
)

capability_available = Gauge(
    "capability_available",
    "Whether an enrichment capability is currently enabled (1) or latched off (0)",
    ["capability"],
)


def record_upstream_attempt(operation: str, transport: str, outcome: str, duration_s: float):
    """Record one endpoint attempt."""
    upstream_requests_total.labels(operation=operation, transport=transport, outcome=outcome).inc()
    upstream_request_duration_seconds.labels(transport=transport).observe(duration_s)


def record_envelope_stage(stage: str):
    """Record which envelope stage resolved (or failed) a body."""
    envelope_parse_total.labels(stage=stage).inc()


def record_enrichment_fetch(capability: str, success: bool):
    """Record one enrichment fetch outcome."""
    status = "success" if success else "failure"
    enrichment_fetches_total.labels(capability=capability, status=status).inc()


def set_capability_available(capability: str, available: bool):
    """Update the capability latch gauge."""
    capability_available.labels(capability=capability).set(1 if available else 0)
