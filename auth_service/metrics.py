"""Prometheus counters for the credential endpoints."""

from __future__ import annotations

from prometheus_client import Counter

LOGIN_ATTEMPTS = Counter(
    "auth_login_attempts_total",
    "Sign-in attempts by outcome.",
    ["outcome"],
)

REGISTRATIONS = Counter(
    "auth_registrations_total",
    "Accounts registered successfully.",
)
