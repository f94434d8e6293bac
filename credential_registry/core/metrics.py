"""Application metrics using the Prometheus client library.

One inventory of everything the service measures.  Other modules import
specific metrics and increment/observe them at the point of action.

Registry counters are only incremented after the store transaction for an
operation has committed, so a rolled-back call never shows up as an
issuance or a lifecycle change.  Rejected calls are counted separately in
REGISTRY_ERRORS, labelled by error name.

Useful queries:
  rate(credentials_issued_total[5m])                 issuance throughput
  sum by (result) (rate(credential_verifications_total[1h]))
  increase(registry_errors_total{error="NotAuthorized"}[1h])
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    # 500ms is the p95 latency SLO target (see core/slo.py)
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

RATE_LIMIT_HITS = Counter(
    "rate_limit_hits_total",
    "Requests rejected by rate limiting (429s)",
    ["key_type"],  # "identity" or "ip"
)

# ---------------------------------------------------------------------------
# Registry metrics (incremented by the services that own the behavior)
# ---------------------------------------------------------------------------

CREDENTIALS_ISSUED = Counter(
    "credentials_issued_total",
    "Credentials issued, by issuance path",
    ["path"],  # "direct" or "delegate"
)

CREDENTIAL_MUTATIONS = Counter(
    "credential_mutations_total",
    "Committed lifecycle mutations on existing credentials",
    ["operation"],  # revoke|renew|renew_delegate|transfer|level
)

VERIFICATIONS = Counter(
    "credential_verifications_total",
    "Verification outcomes",
    ["result", "logged"],  # result: valid|revoked|expired|unknown
)

DISPUTES = Counter(
    "credential_disputes_total",
    "Dispute activity",
    ["action"],  # filed|responded
)

REGISTRY_ERRORS = Counter(
    "registry_errors_total",
    "Registry calls rejected, by error name",
    ["error"],
)
