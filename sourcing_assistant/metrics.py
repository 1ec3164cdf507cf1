"""Prometheus metrics for the sourcing assistant."""

from prometheus_client import Counter, Histogram, Info

# Application info
app_info = Info("sourcing_assistant", "Sourcing assistant application info")
app_info.info({"version": "0.1.0", "name": "sourcing-assistant"})

image_scores_total = Counter(
    "image_scores_total",
    "Total number of image quality scoring calls",
    ["status"],
)

stale_image_scores_total = Counter(
    "stale_image_scores_total",
    "Scoring results dropped because their image was removed",
)

analysis_requests_total = Counter(
    "analysis_requests_total",
    "Total number of proposal analysis requests",
    ["status"],
)

analysis_duration_seconds = Histogram(
    "analysis_duration_seconds",
    "Time spent waiting on the analysis service",
    buckets=[1.0, 5.0, 10.0, 20.0, 30.0, 60.0, 120.0],
)

proposal_parses_total = Counter(
    "proposal_parses_total",
    "Total number of proposal parse attempts",
    ["status", "strategy"],
)

price_alerts_triggered_total = Counter(
    "price_alerts_triggered_total",
    "Total number of price alert notifications produced",
)

lead_submissions_total = Counter(
    "lead_submissions_total",
    "Total number of lead submissions",
    ["status"],
)


def record_image_score(success: bool):
    """Record an image scoring outcome."""
    status = "success" if success else "error"
    image_scores_total.labels(status=status).inc()


def record_analysis(success: bool, duration: float):
    """Record an analysis request."""
    status = "success" if success else "error"
    analysis_requests_total.labels(status=status).inc()
    analysis_duration_seconds.observe(duration)


def record_parse(success: bool, strategy: str):
    """Record a proposal parse attempt."""
    status = "success" if success else "error"
    proposal_parses_total.labels(status=status, strategy=strategy).inc()


def record_lead_submission(success: bool):
    """Record a lead submission outcome."""
    status = "success" if success else "error"
    lead_submissions_total.labels(status=status).inc()
