from prometheus_client import Counter

mutation_total = Counter(
    "stevi_mutation_total",
    "Pipeline mutations by action and outcome",
    ["action", "outcome"],
)

audit_failures_total = Counter(
    "stevi_audit_failures_total",
    "Audit events that could not be recorded after a successful mutation",
    ["action"],
)

rate_limit_denials_total = Counter(
    "stevi_rate_limit_denials_total",
    "Attempts rejected by the rate limiter",
    ["event_type"],
)

view_invalidations_total = Counter(
    "stevi_view_invalidations_total",
    "View paths marked stale after a mutation"
)
