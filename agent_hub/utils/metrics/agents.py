"""
Prometheus metrics for agent connection monitoring.

This module defines metrics for tracking agent WebSocket connections,
registrations, malformed inbound payloads and dispatched commands.
"""

from agent_hub.utils.metrics._helpers import (
    _get_or_create_counter,
    _get_or_create_gauge,
)

# Agent Connection Metrics
agent_connections_active = _get_or_create_gauge(
    "agent_connections_active", "Number of open agent WebSocket connections"
)

agent_connections_total = _get_or_create_counter(
    "agent_connections_total",
    "Total agent WebSocket connections",
    ["status"],  # accepted, failed_assign
)

agent_registrations_total = _get_or_create_counter(
    "agent_registrations_total", "Total successful agent registrations"
)

agent_messages_malformed_total = _get_or_create_counter(
    "agent_messages_malformed_total",
    "Total inbound agent messages discarded as malformed",
)

# Dispatch Metrics
agent_commands_sent_total = _get_or_create_counter(
    "agent_commands_sent_total",
    "Total commands written to agent connections",
    ["target"],  # single, broadcast
)

agent_commands_not_found_total = _get_or_create_counter(
    "agent_commands_not_found_total",
    "Total single-target commands whose target was not found",
)
