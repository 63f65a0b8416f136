"""Submission text generation."""

from agent_autopilot.submission.analysis import TaskAnalysis, analyze_task
from agent_autopilot.submission.generator import SubmissionGenerator

__all__ = ["SubmissionGenerator", "TaskAnalysis", "analyze_task"]
