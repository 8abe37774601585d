"""
Prometheus metrics for the agent hub.

Metrics are grouped by concern in submodules and re-exported here so that
callers can import them from a single place.
"""

from agent_hub.utils.metrics.agents import (
    agent_commands_not_found_total,
    agent_commands_sent_total,
    agent_connections_active,
    agent_connections_total,
    agent_messages_malformed_total,
    agent_registrations_total,
)

__all__ = [
    "agent_commands_not_found_total",
    "agent_commands_sent_total",
    "agent_connections_active",
    "agent_connections_total",
    "agent_messages_malformed_total",
    "agent_registrations_total",
]
