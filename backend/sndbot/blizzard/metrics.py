"""Prometheus metrics for Blizzard API access."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

BLIZZARD_REQUESTS_TOTAL = Counter(
    "sndbot_blizzard_requests_total",
    "Blizzard API requests grouped by endpoint and response status",
    ["endpoint", "status"],
)

BLIZZARD_REQUEST_LATENCY_SECONDS = Histogram(
    "sndbot_blizzard_request_latency_seconds",
    "Latency of Blizzard API requests",
    ["endpoint"],
)

BLIZZARD_TOKEN_REFRESH_TOTAL = Counter(
    "sndbot_blizzard_token_refresh_total",
    "Client-credential exchanges grouped by outcome",
    ["outcome"],
)
