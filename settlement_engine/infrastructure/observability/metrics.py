"""Prometheus metrics for data source health, settlement payments and the region cache"""

from prometheus_client import Counter, Histogram

# Data source metrics
data_source_failures_counter = Counter(
    "data_source_failures_total",
    "Failed reads/writes against the financial data source",
    ["operation"],
)

# Payment metrics
payment_counter = Counter(
    "settlement_payments_total",
    "Settlement payments recorded",
    ["outcome"],  # accepted | rejected | failed
)

payment_amount_histogram = Histogram(
    "settlement_payment_amount_piasters",
    "Accepted settlement payment amounts in piasters",
    buckets=[10_000, 100_000, 500_000, 1_000_000, 5_000_000, 10_000_000, 50_000_000],
)

# Region cache metrics
region_cache_counter = Counter(
    "region_cache_lookups_total",
    "Provider-ids-in-region cache lookups",
    ["result"],  # hit | miss
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_data_source_failure(operation: str) -> None:
    data_source_failures_counter.labels(operation=operation).inc()


def record_payment(outcome: str, amount_piasters: int = 0) -> None:
    """Count a payment attempt; amounts are only observed for accepted payments"""
    payment_counter.labels(outcome=outcome).inc()
    if outcome == "accepted":
        payment_amount_histogram.observe(amount_piasters)


def record_region_cache_lookup(hit: bool) -> None:
    region_cache_counter.labels(result="hit" if hit else "miss").inc()
