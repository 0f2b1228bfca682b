# src/libs/ledger-common/ledger_common/monitoring.py
import logging
from prometheus_client import Counter, Histogram

logger = logging.getLogger(__name__)

# --------------------------------------------------------------------------------------
# DB metrics (used by ledger_common.utils.async_timed)
# --------------------------------------------------------------------------------------
DB_OPERATION_LATENCY_SECONDS = Histogram(
    "db_operation_latency_seconds",
    "Latency of database operations in seconds, by outcome",
    labelnames=("repository", "method", "outcome"),
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10),
)

# --------------------------------------------------------------------------------------
# HTTP metrics
# --------------------------------------------------------------------------------------
HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "HTTP requests total",
    labelnames=("service", "method", "path", "status"),
)

HTTP_REQUEST_LATENCY_SECONDS = Histogram(
    "http_request_latency_seconds",
    "HTTP request latency in seconds",
    labelnames=("service", "method", "path"),
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10),
)

# --------------------------------------------------------------------------------------
# Ledger metrics
# --------------------------------------------------------------------------------------
LEDGER_BULK_ROWS_TOTAL = Counter(
    "ledger_bulk_rows_total",
    "Rows processed by bulk create, by outcome",
    labelnames=("outcome",),
)

LEDGER_DUPLICATE_CHECKS_TOTAL = Counter(
    "ledger_duplicate_checks_total",
    "Natural-key duplicate checks, by outcome",
    labelnames=("outcome",),
)

LEDGER_MUTATIONS_TOTAL = Counter(
    "ledger_mutations_total",
    "Ledger rows affected by mutations, by operation",
    labelnames=("operation",),
)


def observe_bulk_rows(outcome: str, count: int = 1) -> None:
    if count:
        LEDGER_BULK_ROWS_TOTAL.labels(outcome).inc(count)


def observe_duplicate_check(outcome: str) -> None:
    LEDGER_DUPLICATE_CHECKS_TOTAL.labels(outcome).inc()


def observe_mutation(operation: str, count: int = 1) -> None:
    if count:
        LEDGER_MUTATIONS_TOTAL.labels(operation).inc(count)
