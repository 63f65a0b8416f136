"""Agent Autopilot — recurring task matching and bidding for an agent squadron."""

__version__ = "0.1.0"
