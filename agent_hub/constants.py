"""
Application-level constants for hardcoded protocol behavior.

These values are part of the agent protocol or internal safety limits and
are not meant to be overridden via environment variables. For configurable
values see agent_hub/settings.py.
"""

# ============================================================================
# WebSocket Protocol Constants
# ============================================================================

# WebSocket close code for policy violations (RFC 6455 standard)
# Used when an operator kicks an agent off the hub
WS_POLICY_VIOLATION_CODE = 1008

# WebSocket close code for unexpected server-side failures
WS_INTERNAL_ERROR_CODE = 1011

# Sentinel dispatch target addressing every registered agent
ALL_TARGETS = "all"
