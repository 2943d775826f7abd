"""Prometheus metrics for the Parcel ledger service.

Metrics are organized into two categories:

Business Metrics (for Product/Finance):
- parcel_tokens_issued_total: Tokens issued
- parcel_reservation_total: Credit reservations by outcome
- parcel_credit_reserved_cents_total: Credit reserved against tokens
- parcel_credit_released_cents_total: Credit released by settlements
- parcel_settlement_total: Settlements by outcome
- parcel_plans_completed_total: Plans paid off
- parcel_payments_overdue_total: Payments moved to overdue
- parcel_tokens_frozen_total: Tokens frozen by the overdue sweep or an admin

Technical Metrics (for Engineering/SRE):
- parcel_operation_latency_seconds: Ledger operation latency
- parcel_http_request_duration_seconds: HTTP request latency
- parcel_compensation_total: Reservations released after a failed plan generation
- parcel_notification_*: Notification delivery success/failure/retries
"""

import time
from contextlib import contextmanager
from typing import Generator

from prometheus_client import Counter, Histogram, REGISTRY, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST


# =============================================================================
# Business Metrics (Product/Finance dashboards)
# =============================================================================

tokens_issued = Counter(
    "parcel_tokens_issued_total",
    "Total number of credit tokens issued",
)

reservation_total = Counter(
    "parcel_reservation_total",
    "Total credit reservations by outcome",
    ["outcome"],  # reserved, insufficient_credit, not_active, expired
)

credit_reserved_cents = Counter(
    "parcel_credit_reserved_cents_total",
    "Credit reserved against tokens in cents",
)

credit_released_cents = Counter(
    "parcel_credit_released_cents_total",
    "Credit released back to tokens in cents",
)

settlement_total = Counter(
    "parcel_settlement_total",
    "Installment settlements by outcome",
    ["outcome"],  # settled, already_paid, not_found
)

plans_completed = Counter(
    "parcel_plans_completed_total",
    "Total number of installment plans paid off",
)

payments_overdue = Counter(
    "parcel_payments_overdue_total",
    "Total number of payments transitioned to overdue",
)

tokens_frozen = Counter(
    "parcel_tokens_frozen_total",
    "Total number of tokens frozen",
    ["reason"],  # overdue, admin
)


# =============================================================================
# Technical Metrics (Engineering/SRE dashboards)
# =============================================================================

operation_latency = Histogram(
    "parcel_operation_latency_seconds",
    "Ledger operation latency in seconds",
    ["operation"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)

http_request_latency = Histogram(
    "parcel_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "status_code"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

compensation_total = Counter(
    "parcel_compensation_total",
    "Reservations released after plan generation failed",
)

notification_retries = Counter(
    "parcel_notification_retry_total",
    "Total number of notification delivery retries",
)

notification_failures = Counter(
    "parcel_notification_failures_total",
    "Total number of notification delivery failures (after all retries)",
)

notification_success = Counter(
    "parcel_notification_success_total",
    "Total number of successful notification deliveries",
)


# =============================================================================
# Helper Functions
# =============================================================================

def record_token_issued() -> None:
    tokens_issued.inc()


def record_reservation(outcome: str, amount_cents: int = 0) -> None:
    """Record a reservation attempt; amount only counts when reserved."""
    reservation_total.labels(outcome=outcome).inc()
    if outcome == "reserved":
        credit_reserved_cents.inc(amount_cents)


def record_release(amount_cents: int) -> None:
    credit_released_cents.inc(amount_cents)


def record_settlement(outcome: str) -> None:
    settlement_total.labels(outcome=outcome).inc()


def record_plan_completed() -> None:
    plans_completed.inc()


def record_payments_overdue(count: int) -> None:
    if count:
        payments_overdue.inc(count)


def record_token_frozen(reason: str) -> None:
    tokens_frozen.labels(reason=reason).inc()


def record_compensation() -> None:
    compensation_total.inc()


@contextmanager
def track_operation_latency(operation: str) -> Generator[None, None, None]:
    """Context manager to track a ledger operation's latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start
        operation_latency.labels(operation=operation).observe(duration)


def record_request_latency(method: str, status_code: int, duration_seconds: float) -> None:
    http_request_latency.labels(
        method=method,
        status_code=str(status_code),
    ).observe(duration_seconds)


def record_notification_retry() -> None:
    """Record a notification retry attempt."""
    notification_retries.inc()


def record_notification_success() -> None:
    """Record a successful notification delivery."""
    notification_success.inc()


def record_notification_failure() -> None:
    """Record a failed notification delivery (after all retries)."""
    notification_failures.inc()


def get_metrics() -> bytes:
    """Get current metrics in Prometheus format."""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Get the content type for metrics response."""
    return CONTENT_TYPE_LATEST
