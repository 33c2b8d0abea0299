"""Periodic scheduling of auto-adopt runs through launchd."""

from dotctl.schedule.launchd import (
    AGENT_LABEL,
    AgentStatus,
    LaunchdScheduler,
    agent_plist_path,
    build_agent,
)

__all__ = ["AGENT_LABEL", "AgentStatus", "LaunchdScheduler", "agent_plist_path", "build_agent"]
