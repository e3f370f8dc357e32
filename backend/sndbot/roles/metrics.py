"""Prometheus metrics for Discord role synchronization."""

from __future__ import annotations

from prometheus_client import Counter

ROLE_GRANTS_TOTAL = Counter(
    "sndbot_role_grants_total",
    "Role grant attempts grouped by reason and outcome",
    ["reason", "outcome"],
)
