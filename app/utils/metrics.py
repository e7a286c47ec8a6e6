"""
Prometheus-based metrics for production monitoring.
Provides /metrics endpoint for scraping.
"""
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import APIRouter, Response


# Counters
access_checks_total = Counter(
    "chapter_access_checks_total",
    "Total chapter access checks",
    ["access_type"],  # free, paid, unlocked
)

chapter_unlocks_total = Counter(
    "chapter_unlocks_total",
    "Total chapter unlock attempts",
    ["result"],  # success, already_unlocked, insufficient_balance, not_found, validation_error, rate_limited, error
)

currency_operations_total = Counter(
    "currency_operations_total",
    "Total currency ledger operations",
    ["operation"],  # debit, credit
)

balance_rejected_total = Counter(
    "balance_rejected_total",
    "Total debits rejected for insufficient balance",
)

storage_operations_total = Counter(
    "storage_operations_total",
    "Total image storage operations",
    ["operation", "status"],
)

emails_total = Counter(
    "emails_total",
    "Total emails processed",
    ["status"],  # sent, logged, failed
)

# Histograms
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration",
    ["method", "status_code"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1, 2, 5],
)


# Metrics endpoint router
router = APIRouter()


@router.get("/metrics")
def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint for scraping."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
