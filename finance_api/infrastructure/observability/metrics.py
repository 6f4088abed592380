"""Prometheus metrics for duplication outcomes and HTTP latency"""

from prometheus_client import Counter, Histogram

from finance_api.domain.models import DuplicationResult

# Duplication metrics
duplication_runs_counter = Counter(
    "finance_duplication_runs_total",
    "Period duplication calls",
    ["variant"],  # transactions | cards | month
)

duplicated_records_counter = Counter(
    "finance_duplicated_records_total",
    "Records considered by period duplication",
    ["entity", "variant", "outcome"],  # entity: transaction | bill, outcome: created | existing | stale
)

store_failures_counter = Counter(
    "finance_store_failures_total",
    "Persistence errors surfaced to callers",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_duplication(variant: str, result: DuplicationResult) -> None:
    """Record per-outcome counters for one duplication run"""
    duplication_runs_counter.labels(variant=variant).inc()

    outcomes = [
        ("transaction", "created", result.transactions_created),
        ("transaction", "existing", result.transactions_existing),
        ("bill", "created", result.bills_created),
        ("bill", "existing", result.bills_existing),
        ("bill", "stale", result.bills_skipped_stale),
    ]
    for entity, outcome, count in outcomes:
        if count:
            duplicated_records_counter.labels(entity=entity, variant=variant, outcome=outcome).inc(count)
