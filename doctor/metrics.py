"""Prometheus metrics for problem checks and remediations."""

from prometheus_client import Counter, Histogram

problem_checks_total = Counter(
    "auth_problem_checks_total",
    "Problem checks run, by outcome (ok / detected / error)",
    labelnames=["problem", "outcome"],
)

fix_attempts_total = Counter(
    "auth_fix_attempts_total",
    "Remediation attempts, by outcome (success / failed / error)",
    labelnames=["problem", "outcome"],
)

diagnose_duration = Histogram(
    "auth_diagnose_duration_seconds",
    "Duration of a full diagnostic pass in seconds",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)
