"""Prometheus metrics for monitoring expense activity, settlements, and notification delivery"""

from prometheus_client import Counter, Histogram

# Expense metrics
expense_event_counter = Counter(
    "roomie_expense_events_total",
    "Expense lifecycle mutations",
    ["action"],  # added | removed
)

expense_amount_histogram = Histogram(
    "roomie_expense_amount_cents",
    "Amount of recorded expenses in cents",
    buckets=[500, 1_000, 2_500, 5_000, 10_000, 25_000, 50_000, 100_000, 250_000],
)

# Settlement metrics
settlement_counter = Counter(
    "roomie_settlement_total",
    "Settlement attempts by outcome",
    ["outcome"],  # committed | noop | conflict | unavailable
)

settlement_transfer_counter = Counter(
    "roomie_settlement_transfers_total",
    "Transfers recorded by settlements",
)

settled_amount_counter = Counter(
    "roomie_settled_amount_cents_total",
    "Total cents moved by recorded transfers",
)

# Notification metrics
notification_failure_counter = Counter(
    "roomie_notification_failures_total",
    "Notification events that could not be stored",
)

webhook_latency_histogram = Histogram(
    "webhook_latency_seconds",
    "Notification webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

webhook_failure_counter = Counter(
    "webhook_failures_total",
    "Failed webhook deliveries",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_expense(action: str, amount_cents: int) -> None:
    """Record an expense mutation"""
    expense_event_counter.labels(action=action).inc()
    if action == "added":
        expense_amount_histogram.observe(amount_cents)


def record_settlement(outcome: str, transfer_amounts: list[int] | None = None) -> None:
    """Record settlement outcome and, when committed, the transfers it produced"""
    settlement_counter.labels(outcome=outcome).inc()

    for amount in transfer_amounts or []:
        settlement_transfer_counter.inc()
        settled_amount_counter.inc(amount)
