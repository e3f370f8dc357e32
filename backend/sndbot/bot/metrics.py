"""Prometheus metrics for chat command handling."""

from __future__ import annotations

from prometheus_client import Counter

COMMANDS_TOTAL = Counter(
    "sndbot_commands_total",
    "Chat commands handled grouped by command and outcome",
    ["command", "outcome"],
)
