"""Task matching — candidate filtering and agent scoring."""

from agent_autopilot.matching.matcher import Matcher

__all__ = ["Matcher"]
