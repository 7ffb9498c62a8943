"""Prometheus metrics for debt payments, obligation matching, recurring runs and rollbacks"""

from prometheus_client import Counter, Histogram

# Debt payment metrics
debt_payment_counter = Counter(
    "finflow_debt_payments_total",
    "Confirmed debt payments",
    ["outcome"],  # partial | settled
)

obligation_update_counter = Counter(
    "finflow_obligation_updates_total",
    "Obligations updated by a confirmed payment",
    ["source", "result"],  # result: paid | reduced | failed
)

# Recurring rule metrics
recurring_generated_counter = Counter(
    "finflow_recurring_generated_total",
    "Transactions generated from recurring rules",
)

recurring_rule_failures_counter = Counter(
    "finflow_recurring_rule_failures_total",
    "Recurring rules skipped because a write failed",
)

# Compensation metrics
compensation_counter = Counter(
    "finflow_compensations_total",
    "Multi-step operations rolled back with compensating writes",
    ["operation", "outcome"],  # unwound | incomplete
)

audit_failure_counter = Counter(
    "finflow_audit_failures_total",
    "Audit events that could not be stored",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_debt_payment(settled: bool) -> None:
    debt_payment_counter.labels(outcome="settled" if settled else "partial").inc()


def record_obligation_update(source: str, result: str) -> None:
    obligation_update_counter.labels(source=source, result=result).inc()
